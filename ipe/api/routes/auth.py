"""Authentication API routes."""

import logging

from fastapi import APIRouter, Depends, status

from ipe.api.deps import get_auth_service, get_caller
from ipe.schemas.auth import ChangePasswordPayload, LoginPayload, LoginResponse, UserResponse
from ipe.services.auth_service import AuthService, CallerContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginPayload, auth: AuthService = Depends(get_auth_service)) -> LoginResponse:
    """
    Exchange email and password for a bearer token.

    Returns:
        200: LoginResponse with token and user
        401: Invalid credentials
    """
    user, token = auth.login(payload.email, payload.password)
    return LoginResponse(access_token=token, user=UserResponse.model_validate(user))


@router.patch("/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    payload: ChangePasswordPayload,
    caller: CallerContext = Depends(get_caller),
    auth: AuthService = Depends(get_auth_service),
) -> None:
    auth.change_password(caller, payload.current_password, payload.new_password)

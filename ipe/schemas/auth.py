"""Pydantic schemas for login and password change."""

from pydantic import BaseModel, ConfigDict, Field


class LoginPayload(BaseModel):
    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Plain password")


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    party_id: int | None = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class LoginResponse(BaseModel):
    """Response schema for POST /api/auth/login."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class ChangePasswordPayload(BaseModel):
    current_password: str
    new_password: str

"""Onboarding setup API routes (public until configured)."""

from fastapi import APIRouter, Depends, status

from ipe.api.deps import get_setup_service
from ipe.schemas.setup import SetupStatusResponse, SetupWizardPayload, SetupWizardResponse
from ipe.services.setup_service import SetupService

router = APIRouter(prefix="/api/setup", tags=["setup"])


@router.get("/status", response_model=SetupStatusResponse)
async def setup_status(setup: SetupService = Depends(get_setup_service)) -> SetupStatusResponse:
    config = setup.current()
    return SetupStatusResponse(
        configured=bool(config and config.initial_setup_done),
        contract_start_date=config.contract_start_date if config else None,
    )


@router.post("/wizard", response_model=SetupWizardResponse, status_code=status.HTTP_201_CREATED)
async def run_wizard(
    payload: SetupWizardPayload, setup: SetupService = Depends(get_setup_service)
) -> SetupWizardResponse:
    """
    Run the one-shot onboarding wizard.

    Returns:
        201: The owner login created by the wizard
        400: Already configured, property exists or invalid data
        422: Missing fields
    """
    owner = setup.run_wizard(payload)
    return SetupWizardResponse(
        message="Initial setup completed",
        user_id=owner.id,
        email=owner.email,
        name=owner.name,
        role=owner.role.value,
    )

"""Pydantic schemas for the onboarding wizard."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class WizardParty(BaseModel):
    """Owner or buyer details entered in the wizard."""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    cpf: str = Field(..., min_length=11)
    phone: str | None = None
    rg: str | None = None
    issuing_agency: str | None = None


class WizardOwner(WizardParty):
    password: str = Field(..., min_length=6, description="Password of the owner login")


class WizardProperty(BaseModel):
    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    sale_value: Decimal = Field(..., gt=0)
    rent_value: Decimal = Field(..., gt=0)


class SetupWizardPayload(BaseModel):
    """Request payload for POST /api/setup/wizard."""

    owner: WizardOwner
    buyer: WizardParty
    property: WizardProperty
    contract_start_date: date


class SetupStatusResponse(BaseModel):
    configured: bool
    contract_start_date: date | None = None


class SetupWizardResponse(BaseModel):
    message: str
    user_id: int
    email: str
    name: str
    role: str

    model_config = ConfigDict(from_attributes=True)

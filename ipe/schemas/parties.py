"""Pydantic schemas for contract parties."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class PartyResponse(BaseModel):
    id: int
    kind: str
    name: str
    email: str
    phone: str | None = None
    rg: str | None = None
    issuing_agency: str | None = None
    cpf: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

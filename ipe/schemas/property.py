"""Pydantic schemas for the property."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class PropertyResponse(BaseModel):
    id: int
    name: str
    address: str
    sale_value: Decimal
    rent_value: Decimal
    contract_file_id: int | None = None
    cover_photo_id: int | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

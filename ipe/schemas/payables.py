"""Pydantic schemas for installments, rent entries and condominium fee entries."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict


class PayableResponse(BaseModel):
    """Fields shared by every payable record."""

    id: int
    property_id: int
    amount: Decimal
    status: str
    paid_at: datetime | None = None
    evidence_id: int | None = None
    version: int

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class InstallmentResponse(PayableResponse):
    number: int
    due_date: date


class MonthlyEntryResponse(PayableResponse):
    """Rent or condominium fee entry."""

    month: int
    year: int


class AuditEntryResponse(BaseModel):
    """One audit log entry of a payable record."""

    id: int
    action: str
    actor_id: int | None = None
    changes: dict[str, Any] | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

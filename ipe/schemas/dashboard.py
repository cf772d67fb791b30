"""Pydantic schemas for dashboard statistics."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from ipe.schemas.payables import InstallmentResponse, MonthlyEntryResponse


class DashboardStatsResponse(BaseModel):
    total_installments: int
    paid_installments: int
    pending_installments: int
    total_amount: Decimal
    paid_amount: Decimal
    total_amount_display: str
    paid_amount_display: str
    next_due_date: date | None = None
    recent_installments: list[InstallmentResponse]
    current_rent: MonthlyEntryResponse | None = None
    current_condo_fee: MonthlyEntryResponse | None = None

    model_config = ConfigDict(from_attributes=True)

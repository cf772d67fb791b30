"""Dashboard statistics over installments, rent and condominium fees."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ipe.models.payable import CondoFeeEntry, Installment, PaymentStatus, RentEntry
from ipe.services.locale_service import format_amount
from ipe.services.payment_status import Clock, utc_now

RECENT_INSTALLMENTS = 5


@dataclass
class DashboardStats:
    total_installments: int = 0
    paid_installments: int = 0
    pending_installments: int = 0
    total_amount: Decimal = Decimal("0.00")
    paid_amount: Decimal = Decimal("0.00")
    next_due_date: date | None = None
    recent_installments: list[Installment] = field(default_factory=list)
    current_rent: RentEntry | None = None
    current_condo_fee: CondoFeeEntry | None = None

    @property
    def total_amount_display(self) -> str:
        return format_amount(self.total_amount)

    @property
    def paid_amount_display(self) -> str:
        return format_amount(self.paid_amount)


class DashboardService:
    """Aggregate payment progress for the dashboard."""

    def __init__(self, db: Session, clock: Clock = utc_now):
        self.db = db
        self.clock = clock

    def stats(self) -> DashboardStats:
        """Compute installment totals and the current month's rent and condo entries.

        "Pending" counts every installment not yet confirmed (pendente or
        pagamento_informado). The next due date is the earliest among them.
        """
        installments = list(
            self.db.execute(select(Installment).order_by(Installment.number)).scalars()
        )
        paid = [i for i in installments if i.status is PaymentStatus.PAGO]
        unpaid = [i for i in installments if i.status is not PaymentStatus.PAGO]

        today = self.clock().date()
        return DashboardStats(
            total_installments=len(installments),
            paid_installments=len(paid),
            pending_installments=len(unpaid),
            total_amount=sum((i.amount for i in installments), Decimal("0.00")),
            paid_amount=sum((i.amount for i in paid), Decimal("0.00")),
            next_due_date=min((i.due_date for i in unpaid), default=None),
            recent_installments=installments[-RECENT_INSTALLMENTS:],
            current_rent=self._entry_for(RentEntry, today),
            current_condo_fee=self._entry_for(CondoFeeEntry, today),
        )

    def _entry_for(self, model: type, today: date):
        return self.db.execute(
            select(model).where(model.month == today.month, model.year == today.year).limit(1)
        ).scalar_one_or_none()


__all__ = ["DashboardService", "DashboardStats"]

"""Payable record ORM models: sale installments, rent entries and condo fees.

The three tables share one column set (PayableMixin) and one payment status
lifecycle, enforced by ipe.services.payment_status.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Union

from sqlalchemy import CheckConstraint, Date, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from ipe.models import Base, BaseModel
from ipe.models.user import enum_values


class PaymentStatus(str, Enum):
    """Payment lifecycle of a payable record."""

    PENDENTE = "pendente"
    PAGAMENTO_INFORMADO = "pagamento_informado"
    PAGO = "pago"


class PayableMixin:
    """Columns shared by every payable record.

    Invariants (kept by the transition service, not the database):
    - status == PAGAMENTO_INFORMADO implies evidence_id is set
    - paid_at is set iff status == PAGO
    - amount > 0 (also a CHECK constraint)
    """

    # File entity tag for evidence uploaded against this record
    entity_name: ClassVar[str]

    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, native_enum=False, values_callable=enum_values, length=32),
        default=PaymentStatus.PENDENTE,
        nullable=False,
        index=True,
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Set when status becomes pago, cleared otherwise",
    )
    evidence_id: Mapped[int | None] = mapped_column(
        ForeignKey("stored_files.id", ondelete="SET NULL"),
        nullable=True,
        comment="Proof of payment (comprovante)",
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Optimistic concurrency counter",
    )

    @declared_attr.directive
    def __mapper_args__(cls) -> dict:
        return {"version_id_col": cls.__table__.c.version}


class Installment(Base, BaseModel, PayableMixin):
    """One installment (parcela) of the property sale."""

    __tablename__ = "installments"
    entity_name: ClassVar[str] = "installment"

    number: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        UniqueConstraint("property_id", "number", name="uq_installment_number"),
        CheckConstraint("amount > 0", name="ck_installment_amount_positive"),
    )

    @property
    def period_label(self) -> str:
        return f"#{self.number}"

    def __repr__(self) -> str:
        return (
            f"<Installment(id={self.id}, number={self.number}, due_date={self.due_date}, "
            f"amount={self.amount}, status={self.status.value})>"
        )


class RentEntry(Base, BaseModel, PayableMixin):
    """Monthly rent (aluguel) owed for the property."""

    __tablename__ = "rent_entries"
    entity_name: ClassVar[str] = "rent"

    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("property_id", "year", "month", name="uq_rent_period"),
        CheckConstraint("amount > 0", name="ck_rent_amount_positive"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_rent_month"),
        Index("idx_rent_period", "year", "month"),
    )

    @property
    def period_label(self) -> str:
        return f"{self.month:02d}/{self.year}"

    def __repr__(self) -> str:
        return (
            f"<RentEntry(id={self.id}, period={self.period_label}, amount={self.amount}, "
            f"status={self.status.value})>"
        )


class CondoFeeEntry(Base, BaseModel, PayableMixin):
    """Monthly condominium fee (condomínio) for the property."""

    __tablename__ = "condo_fee_entries"
    entity_name: ClassVar[str] = "condo_fee"

    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("property_id", "year", "month", name="uq_condo_fee_period"),
        CheckConstraint("amount > 0", name="ck_condo_fee_amount_positive"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_condo_fee_month"),
        Index("idx_condo_fee_period", "year", "month"),
    )

    @property
    def period_label(self) -> str:
        return f"{self.month:02d}/{self.year}"

    def __repr__(self) -> str:
        return (
            f"<CondoFeeEntry(id={self.id}, period={self.period_label}, amount={self.amount}, "
            f"status={self.status.value})>"
        )


PayableRecord = Union[Installment, RentEntry, CondoFeeEntry]

# URL/entity kind -> model
PAYABLE_MODELS: dict[str, type] = {
    Installment.entity_name: Installment,
    RentEntry.entity_name: RentEntry,
    CondoFeeEntry.entity_name: CondoFeeEntry,
}


__all__ = [
    "CondoFeeEntry",
    "Installment",
    "PAYABLE_MODELS",
    "PayableMixin",
    "PayableRecord",
    "PaymentStatus",
    "RentEntry",
]

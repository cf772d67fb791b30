"""Demo data seeding for local development.

Creates the owner and buyer (parties and logins), the property, eight sale
installments, six rent entries and six condominium fee entries. Runs only
against an empty database; everything is committed at once or not at all.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ipe.models.party import Party
from ipe.models.payable import CondoFeeEntry, Installment, PaymentStatus, RentEntry
from ipe.models.property import Property
from ipe.models.setup_config import SetupConfig
from ipe.models.user import Role, User
from ipe.services.auth_service import hash_password
from ipe.services.errors import StorageError
from ipe.services.transaction import run_in_transaction

SEED_YEAR = 2024
INSTALLMENT_AMOUNT = Decimal("5625.00")
RENT_AMOUNT = Decimal("2500.00")
PAID_INSTALLMENTS = 3
PAID_MONTHS = 4


@dataclass
class SeedResult:
    """Result of a seeding operation."""

    success: bool
    users_created: int = 0
    installments_created: int = 0
    rent_entries_created: int = 0
    condo_fee_entries_created: int = 0
    skipped: bool = False
    error_message: str | None = None

    def __str__(self) -> str:
        if not self.success:
            return f"✗ Seed failed: {self.error_message}"
        if self.skipped:
            return "✓ Database already has users; nothing seeded"
        return (
            f"✓ Seed successful\n"
            f"  Users: {self.users_created}\n"
            f"  Installments: {self.installments_created}\n"
            f"  Rent entries: {self.rent_entries_created}\n"
            f"  Condo fee entries: {self.condo_fee_entries_created}"
        )


class DemoSeedService:
    """Fill an empty database with demo records."""

    def __init__(self, session: Session, password: str, logger: logging.Logger | None = None):
        self.session = session
        self.password = password
        self.logger = logger or logging.getLogger("ipe.seeding")

    def _paid_at(self, day: date) -> datetime:
        return datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc)

    def execute_seed(self) -> SeedResult:
        user_count = self.session.execute(select(func.count(User.id))).scalar_one()
        if user_count:
            self.logger.info(f"Found {user_count} existing user(s); skipping seed")
            return SeedResult(success=True, skipped=True)

        password_hash = hash_password(self.password)
        owner = User(
            email="proprietario@teste.com",
            password_hash=password_hash,
            name="Carlos Eduardo Silva",
            role=Role.OWNER,
            party=Party(
                kind=Role.OWNER,
                name="Carlos Eduardo Silva",
                email="proprietario@teste.com",
                phone="(11) 98765-4321",
                cpf="123.456.789-00",
                rg="12.345.678-9",
                issuing_agency="SSP/SP",
            ),
        )
        buyer = User(
            email="comprador@teste.com",
            password_hash=password_hash,
            name="Ana Paula Oliveira",
            role=Role.BUYER,
            party=Party(
                kind=Role.BUYER,
                name="Ana Paula Oliveira",
                email="comprador@teste.com",
                phone="(11) 91234-5678",
                cpf="987.654.321-00",
                rg="98.765.432-1",
                issuing_agency="SSP/SP",
            ),
        )
        prop = Property(
            name="Casa no Centro",
            address="Rua das Flores, 123 - Centro - São Paulo/SP - CEP 01234-567",
            sale_value=Decimal("450000.00"),
            rent_value=RENT_AMOUNT,
        )
        result = SeedResult(success=True, users_created=2)

        def mutate() -> None:
            self.session.add_all([owner, buyer, prop])
            self.session.add(
                SetupConfig(initial_setup_done=True, contract_start_date=date(SEED_YEAR, 1, 15))
            )
            self.session.flush()

            for number in range(1, 9):
                due = date(SEED_YEAR, number, 15)
                paid = number <= PAID_INSTALLMENTS
                self.session.add(
                    Installment(
                        property_id=prop.id,
                        number=number,
                        due_date=due,
                        amount=INSTALLMENT_AMOUNT,
                        status=PaymentStatus.PAGO if paid else PaymentStatus.PENDENTE,
                        paid_at=self._paid_at(due - timedelta(days=2)) if paid else None,
                    )
                )
                result.installments_created += 1

            for month in range(1, 7):
                paid = month <= PAID_MONTHS
                paid_at = self._paid_at(date(SEED_YEAR, month, 10)) if paid else None
                status = PaymentStatus.PAGO if paid else PaymentStatus.PENDENTE
                self.session.add(
                    RentEntry(
                        property_id=prop.id,
                        month=month,
                        year=SEED_YEAR,
                        amount=RENT_AMOUNT,
                        status=status,
                        paid_at=paid_at,
                    )
                )
                self.session.add(
                    CondoFeeEntry(
                        property_id=prop.id,
                        month=month,
                        year=SEED_YEAR,
                        amount=Decimal("450.00") + Decimal("12.50") * month,
                        status=status,
                        paid_at=paid_at,
                    )
                )
                result.rent_entries_created += 1
                result.condo_fee_entries_created += 1

        try:
            run_in_transaction(self.session, None, mutate, "demo seed")
        except StorageError as e:
            self.logger.error(f"Seed failed, database unchanged: {e.message}")
            return SeedResult(success=False, error_message=e.message)

        self.logger.info(str(result))
        self.logger.info(f"Logins: owner={owner.email} buyer={buyer.email} password={self.password}")
        return result


__all__ = ["DemoSeedService", "SeedResult"]

"""Payable record service: create, list, transition and delete payable records.

Installments, rent entries and condo fee entries share this service. Every
mutation validates first (role, lifecycle edge, evidence, version) and then
writes status, evidence and audit entry in one commit. A failed request
leaves the record exactly as it was and removes any blob written for it.
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ipe.models.audit_log import AuditLog
from ipe.models.payable import (
    PAYABLE_MODELS,
    CondoFeeEntry,
    Installment,
    PayableRecord,
    PaymentStatus,
    RentEntry,
)
from ipe.models.property import Property
from ipe.models.stored_file import FilePurpose
from ipe.services.audit_service import AuditService
from ipe.services.auth_service import CallerContext
from ipe.services.errors import (
    ConflictError,
    DataValidationError,
    NotFoundError,
    PermissionDeniedError,
)
from ipe.services.file_store import EVIDENCE_FILES, FileStore, FileUpload, validate_files
from ipe.services.locale_service import parse_localized_decimal
from ipe.services.payment_status import Clock, plan_transition, utc_now
from ipe.services.transaction import run_in_transaction

logger = logging.getLogger(__name__)

INSTALLMENT_DUE_DAY = 15
CENTS = Decimal("0.01")


def parse_amount(value: Decimal | str | int | float | None) -> Decimal:
    """Convert an incoming amount to a positive 2-place Decimal.

    Accepts plain decimals ("5625.00") and the locale notation ("5.625,00").

    Raises:
        DataValidationError: missing, not a number, or not positive
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise DataValidationError("Amount is required")
    text = str(value).strip()
    try:
        amount = Decimal(text)
    except InvalidOperation:
        try:
            amount = parse_localized_decimal(text)
        except ValueError:
            raise DataValidationError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise DataValidationError("Amount must be positive")
    amount = amount.quantize(CENTS)
    if amount <= 0:
        raise DataValidationError("Amount must be positive")
    return amount


def next_month(month: int, year: int) -> tuple[int, int]:
    """(month, year) following the given one."""
    if month >= 12:
        return 1, year + 1
    return month + 1, year


def next_due_date(previous: date) -> date:
    """Installment due date: the 15th of the month after previous."""
    month, year = next_month(previous.month, previous.year)
    return date(year, month, INSTALLMENT_DUE_DAY)


class PayableService:
    """Service for payable record operations.

    Args:
        db: Database session (the service commits it)
        files: FileStore bound to the same session
        clock: Source of "now" for paid_at and default periods
    """

    def __init__(self, db: Session, files: FileStore, clock: Clock = utc_now):
        self.db = db
        self.files = files
        self.clock = clock

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    def model_for(kind: str) -> type:
        model = PAYABLE_MODELS.get(kind)
        if model is None:
            raise NotFoundError(f"Unknown payable record kind: {kind}")
        return model

    def get(self, kind: str, record_id: int) -> PayableRecord:
        """Get a payable record by kind and id.

        Raises:
            NotFoundError: kind unknown or id does not resolve
        """
        record = self.db.get(self.model_for(kind), record_id)
        if record is None:
            raise NotFoundError(f"{kind} {record_id} not found")
        return record

    def list_by_property(self, kind: str, property_id: int | None = None) -> list[PayableRecord]:
        """List records of one kind.

        Installments are ordered by number; rent and condo entries newest
        period first.
        """
        model = self.model_for(kind)
        query = select(model)
        if property_id is not None:
            query = query.where(model.property_id == property_id)
        if model is Installment:
            query = query.order_by(Installment.number.asc())
        else:
            query = query.order_by(model.year.desc(), model.month.desc())
        return list(self.db.execute(query).scalars())

    def _current_property(self) -> Property:
        prop = self.db.execute(select(Property).order_by(Property.id).limit(1)).scalar_one_or_none()
        if prop is None:
            raise DataValidationError("A property must be registered first")
        return prop

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @staticmethod
    def _require_owner(caller: CallerContext, action: str) -> None:
        if not caller.is_owner:
            raise PermissionDeniedError(f"Only the owner can {action}")

    def create_installment(
        self,
        caller: CallerContext,
        amount: Decimal | str | int | float | None,
        due_date: date | None = None,
        evidence: FileUpload | None = None,
    ) -> Installment:
        """Append the next installment of the sale.

        The number follows the last installment; the due date defaults to
        the 15th of the month after the last due date (or after today).
        An evidence file may be attached; status stays pendente.
        """
        self._require_owner(caller, "create installments")
        value = parse_amount(amount)
        prop = self._current_property()
        if evidence is not None:
            validate_files([evidence], EVIDENCE_FILES)

        last = self.db.execute(
            select(Installment)
            .where(Installment.property_id == prop.id)
            .order_by(Installment.number.desc())
            .limit(1)
        ).scalar_one_or_none()

        number = last.number + 1 if last else 1
        if due_date is None:
            due_date = next_due_date(last.due_date if last else self.clock().date())

        installment = Installment(
            property_id=prop.id,
            number=number,
            due_date=due_date,
            amount=value,
            status=PaymentStatus.PENDENTE,
        )

        def mutate() -> None:
            self.db.add(installment)
            self.db.flush()
            if evidence is not None:
                stored = self.files.save_upload(
                    evidence, Installment.entity_name, installment.id, FilePurpose.EVIDENCE
                )
                installment.evidence_id = stored.id
            AuditService.log(
                self.db,
                Installment.entity_name,
                installment.id,
                "create",
                actor_id=caller.caller_id,
                changes={"number": number, "amount": str(value)},
            )

        self._persist(mutate)
        logger.info(f"Installment #{number} created (amount={value}, due={due_date})")
        return installment

    def _next_period(self, model: type, property_id: int) -> tuple[int, int]:
        last = self.db.execute(
            select(model)
            .where(model.property_id == property_id)
            .order_by(model.year.desc(), model.month.desc())
            .limit(1)
        ).scalar_one_or_none()
        if last is None:
            return 1, self.clock().year
        return next_month(last.month, last.year)

    def _create_monthly(
        self, model: type, caller: CallerContext, amount: Decimal, prop: Property
    ) -> RentEntry | CondoFeeEntry:
        month, year = self._next_period(model, prop.id)
        entry = model(
            property_id=prop.id,
            month=month,
            year=year,
            amount=amount,
            status=PaymentStatus.PENDENTE,
        )

        def mutate() -> None:
            self.db.add(entry)
            self.db.flush()
            AuditService.log(
                self.db,
                model.entity_name,
                entry.id,
                "create",
                actor_id=caller.caller_id,
                changes={"period": f"{month:02d}/{year}", "amount": str(amount)},
            )

        self._persist(mutate)
        logger.info(f"{model.entity_name} {month:02d}/{year} created (amount={amount})")
        return entry

    def create_rent_entry(
        self, caller: CallerContext, amount: Decimal | str | int | float | None = None
    ) -> RentEntry:
        """Append the next month's rent; amount defaults to the property rent."""
        self._require_owner(caller, "create rent entries")
        prop = self._current_property()
        value = parse_amount(prop.rent_value if amount is None else amount)
        return self._create_monthly(RentEntry, caller, value, prop)

    def create_condo_fee_entry(
        self, caller: CallerContext, amount: Decimal | str | int | float | None
    ) -> CondoFeeEntry:
        """Append the next month's condominium fee."""
        self._require_owner(caller, "create condominium fee entries")
        value = parse_amount(amount)
        prop = self._current_property()
        return self._create_monthly(CondoFeeEntry, caller, value, prop)

    # ------------------------------------------------------------------
    # Status transitions and evidence
    # ------------------------------------------------------------------

    @staticmethod
    def _check_version(record: PayableRecord, expected_version: int | None) -> None:
        if expected_version is not None and expected_version != record.version:
            raise ConflictError(
                f"{record.entity_name} {record.id} is at version {record.version}, "
                f"expected {expected_version}"
            )

    def apply_transition(
        self,
        kind: str,
        record_id: int,
        requested_status: str | PaymentStatus,
        caller: CallerContext,
        evidence: FileUpload | None = None,
        expected_version: int | None = None,
    ) -> PayableRecord:
        """Change a record's payment status.

        Args:
            kind: "installment", "rent" or "condo_fee"
            record_id: Record primary key
            requested_status: Target status string
            caller: Authenticated caller (role comes from here only)
            evidence: Optional proof-of-payment upload
            expected_version: Version the caller last saw (optional)

        Returns:
            The updated record

        Raises:
            NotFoundError, DataValidationError, InvalidTransitionError,
            PermissionDeniedError, ConflictError, StorageError
        """
        record = self.get(kind, record_id)
        try:
            plan = plan_transition(
                current=record.status,
                requested=requested_status,
                role=caller.role,
                has_existing_evidence=record.evidence_id is not None,
                has_uploaded_evidence=evidence is not None,
                now=self.clock(),
            )
            self._check_version(record, expected_version)
            if evidence is not None:
                validate_files([evidence], EVIDENCE_FILES)
        except (DataValidationError, PermissionDeniedError, ConflictError) as e:
            logger.warning(
                "Rejected transition on %s %s by user %s (%s): %s",
                kind,
                record_id,
                caller.caller_id,
                caller.role.value,
                e.message,
            )
            raise

        def mutate() -> None:
            if plan.store_evidence:
                stored = self.files.save_upload(
                    evidence, record.entity_name, record.id, FilePurpose.EVIDENCE
                )
                record.evidence_id = stored.id
            record.status = plan.target
            record.paid_at = plan.paid_at
            AuditService.log(
                self.db,
                record.entity_name,
                record.id,
                "transition",
                actor_id=caller.caller_id,
                changes={
                    "from": plan.source.value,
                    "to": plan.target.value,
                    "evidence_id": record.evidence_id,
                },
            )

        self._persist(mutate)
        logger.info(
            "%s %s: %s -> %s by user %s",
            kind,
            record_id,
            plan.source.value,
            plan.target.value,
            caller.caller_id,
        )
        return record

    def attach_evidence(
        self,
        kind: str,
        record_id: int,
        caller: CallerContext,
        evidence: FileUpload,
        expected_version: int | None = None,
    ) -> PayableRecord:
        """Attach (or replace) proof of payment without changing status.

        Buyers may not touch the evidence of a confirmed (pago) record.
        """
        record = self.get(kind, record_id)
        if not caller.is_owner and record.status is PaymentStatus.PAGO:
            raise PermissionDeniedError("Only the owner can change evidence of a paid record")
        self._check_version(record, expected_version)
        validate_files([evidence], EVIDENCE_FILES)

        def mutate() -> None:
            stored = self.files.save_upload(
                evidence, record.entity_name, record.id, FilePurpose.EVIDENCE
            )
            previous = record.evidence_id
            record.evidence_id = stored.id
            AuditService.log(
                self.db,
                record.entity_name,
                record.id,
                "attach_evidence",
                actor_id=caller.caller_id,
                changes={"previous_evidence_id": previous, "evidence_id": stored.id},
            )

        self._persist(mutate)
        logger.info(f"Evidence attached to {kind} {record_id} by user {caller.caller_id}")
        return record

    def remove_evidence(
        self,
        kind: str,
        record_id: int,
        caller: CallerContext,
        expected_version: int | None = None,
    ) -> PayableRecord:
        """Detach and delete the proof of payment.

        Refused while the record is pagamento_informado, which requires evidence.
        """
        self._require_owner(caller, "remove proof of payment")
        record = self.get(kind, record_id)
        self._check_version(record, expected_version)
        if record.evidence_id is None:
            raise DataValidationError("Record has no proof of payment")
        if record.status is PaymentStatus.PAGAMENTO_INFORMADO:
            raise DataValidationError(
                "Proof of payment cannot be removed while the payment is informed; "
                "revert the status first"
            )

        def mutate() -> None:
            file_id = record.evidence_id
            record.evidence_id = None
            self.db.flush()
            self.files.delete(file_id)
            AuditService.log(
                self.db,
                record.entity_name,
                record.id,
                "remove_evidence",
                actor_id=caller.caller_id,
                changes={"evidence_id": file_id},
            )

        self._persist(mutate)
        logger.info(f"Evidence removed from {kind} {record_id} by user {caller.caller_id}")
        return record

    def delete(self, kind: str, record_id: int, caller: CallerContext) -> None:
        """Delete a pending record together with its stored files."""
        self._require_owner(caller, "delete payable records")
        record = self.get(kind, record_id)
        if record.status is not PaymentStatus.PENDENTE:
            raise DataValidationError(
                f"Only pending records can be deleted ({kind} {record_id} is {record.status.value})"
            )

        def mutate() -> None:
            owned = self.files.list_for(record.entity_name, record.id)
            self.db.delete(record)
            self.db.flush()
            for stored in owned:
                self.files.delete(stored.id)
            AuditService.log(
                self.db,
                record.entity_name,
                record_id,
                "delete",
                actor_id=caller.caller_id,
                changes={"amount": str(record.amount), "files": [f.id for f in owned]},
            )

        self._persist(mutate)
        logger.info(f"{kind} {record_id} deleted by user {caller.caller_id}")

    def history(self, kind: str, record_id: int, caller: CallerContext) -> list[AuditLog]:
        """Audit entries of one record, oldest first (owner only)."""
        self._require_owner(caller, "read the audit history")
        record = self.get(kind, record_id)
        return AuditService.history(self.db, record.entity_name, record.id)

    def _persist(self, mutate: Callable[[], None]) -> None:
        run_in_transaction(self.db, self.files, mutate, "payable record")


__all__ = [
    "PayableService",
    "next_due_date",
    "next_month",
    "parse_amount",
]

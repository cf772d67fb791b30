"""Integration tests: payment status transitions persisted through PayableService."""

from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from ipe.models import AuditLog, Installment, PaymentStatus, RentEntry, StoredFile
from ipe.services.audit_service import AuditService
from ipe.services.errors import (
    ConflictError,
    DataValidationError,
    InvalidTransitionError,
    PermissionDeniedError,
)
from ipe.services.file_store import FileUpload

FIXED_NOW = datetime(2025, 3, 10, 12, 30, tzinfo=timezone.utc)  # conftest fixed_clock


def naive(value):
    """SQLite hands back naive datetimes; compare in naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def snapshot(record):
    return (record.status, record.paid_at, record.evidence_id, record.version)


class TestScenarios:
    """Buyer informs, owner confirms, and the rejected variants."""

    def test_buyer_informs_payment_with_pdf(self, payables, installment, buyer, pdf_upload):
        record = payables.apply_transition(
            "installment", installment.id, "pagamento_informado", buyer, evidence=pdf_upload
        )

        assert record.status is PaymentStatus.PAGAMENTO_INFORMADO
        assert record.evidence_id is not None
        assert record.paid_at is None
        stored = payables.files.get(record.evidence_id)
        assert stored.entity == "installment"
        assert stored.entity_id == installment.id
        assert Path(stored.path).read_bytes() == pdf_upload.content

    def test_owner_confirms_informed_payment(
        self, payables, installment, buyer, owner, pdf_upload
    ):
        informed = payables.apply_transition(
            "installment", installment.id, "pagamento_informado", buyer, evidence=pdf_upload
        )
        evidence_id = informed.evidence_id

        record = payables.apply_transition("installment", installment.id, "pago", owner)

        assert record.status is PaymentStatus.PAGO
        assert naive(record.paid_at) == naive(FIXED_NOW)
        assert record.evidence_id == evidence_id

    def test_buyer_cannot_confirm_from_pending(self, payables, installment, buyer, db_session):
        before = snapshot(installment)

        with pytest.raises(PermissionDeniedError):
            payables.apply_transition("installment", installment.id, "pago", buyer)

        db_session.refresh(installment)
        assert snapshot(installment) == before

    def test_owner_cannot_inform_without_evidence(self, payables, installment, owner, db_session):
        before = snapshot(installment)

        with pytest.raises(DataValidationError):
            payables.apply_transition("installment", installment.id, "pagamento_informado", owner)

        db_session.refresh(installment)
        assert snapshot(installment) == before
        assert db_session.query(StoredFile).count() == 0


class TestReverts:
    @pytest.fixture
    def paid(self, payables, installment, buyer, owner, pdf_upload):
        payables.apply_transition(
            "installment", installment.id, "pagamento_informado", buyer, evidence=pdf_upload
        )
        return payables.apply_transition("installment", installment.id, "pago", owner)

    def test_revert_pago_keeps_evidence_and_clears_paid_at(self, payables, paid, owner):
        evidence_id = paid.evidence_id

        record = payables.apply_transition("installment", paid.id, "pagamento_informado", owner)

        assert record.status is PaymentStatus.PAGAMENTO_INFORMADO
        assert record.paid_at is None
        assert record.evidence_id == evidence_id

    def test_pago_to_pendente_rejected(self, payables, paid, owner):
        with pytest.raises(InvalidTransitionError):
            payables.apply_transition("installment", paid.id, "pendente", owner)

    def test_reconfirm_pago_restamps(self, payables, paid, owner):
        later = FIXED_NOW.replace(day=20)
        payables.clock = lambda: later

        record = payables.apply_transition("installment", paid.id, "pago", owner)

        assert naive(record.paid_at) == naive(later)

    def test_owner_reverts_informed_to_pending(self, payables, installment, buyer, owner, pdf_upload):
        payables.apply_transition(
            "installment", installment.id, "pagamento_informado", buyer, evidence=pdf_upload
        )

        record = payables.apply_transition("installment", installment.id, "pendente", owner)

        assert record.status is PaymentStatus.PENDENTE
        assert record.evidence_id is not None
        assert record.paid_at is None


class TestAtomicity:
    def test_invalid_evidence_leaves_record_and_disk_untouched(
        self, payables, installment, buyer, db_session, test_settings
    ):
        bad = FileUpload(filename="recibo.exe", content=b"MZ")
        before = snapshot(installment)

        with pytest.raises(DataValidationError, match="File type not allowed"):
            payables.apply_transition(
                "installment", installment.id, "pagamento_informado", buyer, evidence=bad
            )

        db_session.refresh(installment)
        assert snapshot(installment) == before
        upload_dir = Path(test_settings.upload_dir)
        assert not upload_dir.exists() or list(upload_dir.iterdir()) == []

    def test_failure_after_blob_write_removes_blob(
        self, payables, installment, buyer, pdf_upload, db_session, monkeypatch, test_settings
    ):
        def explode(*args, **kwargs):
            raise RuntimeError("audit write failed")

        monkeypatch.setattr(AuditService, "log", staticmethod(explode))

        with pytest.raises(RuntimeError):
            payables.apply_transition(
                "installment", installment.id, "pagamento_informado", buyer, evidence=pdf_upload
            )

        db_session.refresh(installment)
        assert installment.status is PaymentStatus.PENDENTE
        assert installment.evidence_id is None
        assert db_session.query(StoredFile).count() == 0
        assert list(Path(test_settings.upload_dir).iterdir()) == []


class TestVersioning:
    def test_version_increments_on_each_transition(self, payables, installment, owner):
        assert installment.version == 1

        record = payables.apply_transition("installment", installment.id, "pago", owner)

        assert record.version == 2

    def test_stale_expected_version_conflicts(self, payables, installment, owner, db_session):
        payables.apply_transition("installment", installment.id, "pago", owner)

        with pytest.raises(ConflictError):
            payables.apply_transition(
                "installment", installment.id, "pago", owner, expected_version=1
            )

    def test_matching_expected_version_accepted(self, payables, installment, owner):
        record = payables.apply_transition(
            "installment", installment.id, "pago", owner, expected_version=1
        )

        assert record.status is PaymentStatus.PAGO


class TestAudit:
    def test_transition_writes_audit_row(self, payables, installment, buyer, pdf_upload, db_session):
        record = payables.apply_transition(
            "installment", installment.id, "pagamento_informado", buyer, evidence=pdf_upload
        )

        history = AuditService.history(db_session, "installment", installment.id)
        assert [h.action for h in history] == ["transition"]
        assert history[0].actor_id == buyer.caller_id
        assert history[0].changes == {
            "from": "pendente",
            "to": "pagamento_informado",
            "evidence_id": record.evidence_id,
        }

    def test_rejected_transition_writes_nothing(self, payables, installment, buyer, db_session):
        with pytest.raises(PermissionDeniedError):
            payables.apply_transition("installment", installment.id, "pago", buyer)

        assert db_session.query(AuditLog).count() == 0

    def test_owner_reads_history_through_service(self, payables, installment, owner, buyer):
        payables.apply_transition("installment", installment.id, "pago", owner)

        history = payables.history("installment", installment.id, owner)

        assert [h.changes["to"] for h in history] == ["pago"]
        with pytest.raises(PermissionDeniedError):
            payables.history("installment", installment.id, buyer)


class TestEvidenceOperations:
    def test_attach_evidence_keeps_status(self, payables, installment, buyer, pdf_upload):
        record = payables.attach_evidence("installment", installment.id, buyer, pdf_upload)

        assert record.status is PaymentStatus.PENDENTE
        assert record.evidence_id is not None

    def test_replacing_evidence_while_informed(self, payables, installment, buyer, pdf_upload):
        first = payables.apply_transition(
            "installment", installment.id, "pagamento_informado", buyer, evidence=pdf_upload
        ).evidence_id

        record = payables.attach_evidence("installment", installment.id, buyer, pdf_upload)

        assert record.evidence_id != first
        assert record.status is PaymentStatus.PAGAMENTO_INFORMADO

    def test_buyer_cannot_touch_evidence_of_paid_record(
        self, payables, installment, owner, buyer, pdf_upload
    ):
        payables.apply_transition("installment", installment.id, "pago", owner)

        with pytest.raises(PermissionDeniedError):
            payables.attach_evidence("installment", installment.id, buyer, pdf_upload)

    def test_remove_evidence_refused_while_informed(
        self, payables, installment, buyer, owner, pdf_upload
    ):
        payables.apply_transition(
            "installment", installment.id, "pagamento_informado", buyer, evidence=pdf_upload
        )

        with pytest.raises(DataValidationError):
            payables.remove_evidence("installment", installment.id, owner)

    def test_remove_evidence_deletes_blob(self, payables, installment, owner, pdf_upload, db_session):
        record = payables.attach_evidence("installment", installment.id, owner, pdf_upload)
        stored_path = Path(payables.files.get(record.evidence_id).path)

        record = payables.remove_evidence("installment", installment.id, owner)

        assert record.evidence_id is None
        assert not stored_path.exists()
        assert db_session.query(StoredFile).count() == 0

    def test_buyer_cannot_remove_evidence(self, payables, installment, buyer, pdf_upload):
        payables.attach_evidence("installment", installment.id, buyer, pdf_upload)

        with pytest.raises(PermissionDeniedError):
            payables.remove_evidence("installment", installment.id, buyer)


class TestCreation:
    def test_installments_number_and_due_date_follow_last(self, payables, sample_property, owner):
        first = payables.create_installment(owner, "5625.00")
        second = payables.create_installment(owner, "5625.00")

        assert (first.number, second.number) == (1, 2)
        # FIXED_NOW is 2025-03-10: first due the 15th of the following month
        assert str(first.due_date) == "2025-04-15"
        assert str(second.due_date) == "2025-05-15"
        assert first.status is PaymentStatus.PENDENTE

    def test_installment_created_with_evidence_stays_pending(
        self, payables, sample_property, owner, pdf_upload
    ):
        record = payables.create_installment(owner, "100", evidence=pdf_upload)

        assert record.status is PaymentStatus.PENDENTE
        assert record.evidence_id is not None

    def test_rent_defaults_to_property_rent_and_next_period(self, payables, sample_property, owner):
        january = payables.create_rent_entry(owner)
        february = payables.create_rent_entry(owner, "2600")

        assert (january.month, january.year) == (1, 2025)
        assert january.amount == Decimal("2500.00")
        assert (february.month, february.year) == (2, 2025)
        assert february.amount == Decimal("2600.00")

    def test_condo_period_rolls_over_year(self, payables, sample_property, owner, db_session):
        from ipe.models import CondoFeeEntry

        db_session.add(
            CondoFeeEntry(
                property_id=sample_property.id, month=12, year=2024, amount=Decimal("480.00")
            )
        )
        db_session.commit()

        entry = payables.create_condo_fee_entry(owner, "490,00")

        assert (entry.month, entry.year) == (1, 2025)
        assert entry.amount == Decimal("490.00")

    def test_buyer_cannot_create(self, payables, sample_property, buyer):
        with pytest.raises(PermissionDeniedError):
            payables.create_installment(buyer, "100")

    def test_creation_requires_property(self, payables, owner):
        with pytest.raises(DataValidationError, match="property must be registered"):
            payables.create_rent_entry(owner, "100")

    def test_non_positive_amount_rejected(self, payables, sample_property, owner):
        with pytest.raises(DataValidationError):
            payables.create_condo_fee_entry(owner, "0")

    def test_list_orders(self, payables, sample_property, owner):
        payables.create_installment(owner, "1")
        payables.create_installment(owner, "2")
        payables.create_rent_entry(owner)
        payables.create_rent_entry(owner)

        assert [i.number for i in payables.list_by_property("installment")] == [1, 2]
        assert [r.month for r in payables.list_by_property("rent", sample_property.id)] == [2, 1]


class TestDeletion:
    def test_owner_deletes_pending_record_and_files(
        self, payables, installment, owner, pdf_upload, db_session
    ):
        record = payables.attach_evidence("installment", installment.id, owner, pdf_upload)
        path = Path(payables.files.get(record.evidence_id).path)

        payables.delete("installment", installment.id, owner)

        assert db_session.get(Installment, installment.id) is None
        assert db_session.query(StoredFile).count() == 0
        assert not path.exists()

    def test_paid_record_cannot_be_deleted(self, payables, installment, owner):
        payables.apply_transition("installment", installment.id, "pago", owner)

        with pytest.raises(DataValidationError, match="Only pending"):
            payables.delete("installment", installment.id, owner)

    def test_buyer_cannot_delete(self, payables, installment, buyer):
        with pytest.raises(PermissionDeniedError):
            payables.delete("installment", installment.id, buyer)

    def test_unknown_kind(self, payables, owner):
        from ipe.services.errors import NotFoundError

        with pytest.raises(NotFoundError):
            payables.get("parcela", 1)

    def test_unknown_id(self, payables, sample_property):
        from ipe.services.errors import NotFoundError

        with pytest.raises(NotFoundError):
            payables.get("rent", 404)
        assert RentEntry.entity_name == "rent"

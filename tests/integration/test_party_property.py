"""Integration tests for party and property registration."""

from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import select

from ipe.models import AuditLog, Party, Property, Role, StoredFile, User
from ipe.services.auth_service import verify_password
from ipe.services.errors import DataValidationError, NotFoundError, PermissionDeniedError
from ipe.services.file_store import FileUpload
from ipe.services.party_service import PartyService, normalize_email, parse_role
from ipe.services.property_service import PropertyService


def doc(name: str = "rg.pdf", size: int = 128) -> FileUpload:
    return FileUpload(filename=name, content=b"x" * size, content_type="application/pdf")


@pytest.fixture
def parties(db_session, file_store) -> PartyService:
    return PartyService(db_session, file_store, initial_password="senha123")


@pytest.fixture
def properties(db_session, file_store) -> PropertyService:
    return PropertyService(db_session, file_store)


def register_buyer(parties, owner, **overrides):
    fields = {
        "kind": "Comprador",
        "name": "Marcos Souza",
        "email": "Marcos@Example.com",
        "cpf": "111.222.333-44",
    }
    fields.update(overrides)
    return parties.create(owner, **fields)


class TestPartyHelpers:
    def test_parse_role_accepts_display_values(self):
        assert parse_role("Proprietário") is Role.OWNER
        assert parse_role(" Comprador ") is Role.BUYER

    def test_parse_role_rejects_unknown(self):
        with pytest.raises(DataValidationError, match="Invalid party kind"):
            parse_role("Inquilino")

    def test_normalize_email(self):
        assert normalize_email("  Ana@Teste.COM ") == "ana@teste.com"
        with pytest.raises(DataValidationError):
            normalize_email("not-an-email")


class TestPartyCreate:
    def test_creates_party_and_login(self, parties, owner, db_session):
        party = register_buyer(parties, owner, attachments=[doc()])

        user = db_session.execute(select(User).where(User.party_id == party.id)).scalar_one()
        assert party.email == "marcos@example.com"
        assert user.email == "marcos@example.com"
        assert user.role is Role.BUYER
        assert verify_password("senha123", user.password_hash)
        assert len(parties.files.list_for("party", party.id)) == 1

    def test_create_writes_audit_entry(self, parties, owner, db_session):
        party = register_buyer(parties, owner)

        entry = db_session.execute(
            select(AuditLog).where(AuditLog.entity_type == "party", AuditLog.entity_id == party.id)
        ).scalar_one()
        assert entry.action == "create"
        assert entry.actor_id == owner.caller_id

    def test_buyer_cannot_register_parties(self, parties, buyer):
        with pytest.raises(PermissionDeniedError):
            register_buyer(parties, buyer)

    def test_duplicate_email_rejected(self, parties, owner, db_session):
        with pytest.raises(DataValidationError, match="already exists"):
            register_buyer(parties, owner, email="proprietario@teste.com")

        assert db_session.execute(select(Party)).scalars().all() == [owner_party(db_session)]

    def test_short_cpf_rejected(self, parties, owner):
        with pytest.raises(DataValidationError, match="CPF"):
            register_buyer(parties, owner, cpf="123")

    def test_too_many_attachments_rejected(self, parties, owner, db_session):
        with pytest.raises(DataValidationError, match="At most 3"):
            register_buyer(parties, owner, attachments=[doc(f"{i}.pdf") for i in range(4)])

        assert db_session.execute(select(StoredFile)).scalars().all() == []

    def test_disallowed_attachment_type_rejected(self, parties, owner):
        with pytest.raises(DataValidationError, match="not allowed"):
            register_buyer(parties, owner, attachments=[doc("script.exe")])


def owner_party(db_session) -> Party:
    return db_session.execute(select(Party).where(Party.kind == Role.OWNER)).scalar_one()


class TestPartyUpdate:
    def test_partial_update_mirrors_login(self, parties, owner, db_session):
        party = register_buyer(parties, owner)

        parties.update(owner, party.id, {"email": "novo@example.com", "name": "Marcos S."})

        user = db_session.execute(select(User).where(User.party_id == party.id)).scalar_one()
        assert party.email == "novo@example.com"
        assert party.cpf == "111.222.333-44"
        assert user.email == "novo@example.com"
        assert user.name == "Marcos S."

    def test_unknown_field_rejected(self, parties, owner):
        party = register_buyer(parties, owner)

        with pytest.raises(DataValidationError, match="Unknown party fields"):
            parties.update(owner, party.id, {"password_hash": "x"})

    def test_email_taken_by_other_user_rejected(self, parties, owner, buyer_user):
        party = register_buyer(parties, owner)

        with pytest.raises(DataValidationError, match="already exists"):
            parties.update(owner, party.id, {"email": buyer_user.email})

    def test_attachment_cap_counts_existing_files(self, parties, owner):
        party = register_buyer(parties, owner, attachments=[doc("a.pdf"), doc("b.pdf")])

        parties.update(owner, party.id, {}, attachments=[doc("c.pdf")])
        with pytest.raises(DataValidationError, match="At most 3"):
            parties.update(owner, party.id, {}, attachments=[doc("d.pdf")])

        assert len(parties.files.list_for("party", party.id)) == 3

    def test_missing_party(self, parties, owner):
        with pytest.raises(NotFoundError):
            parties.update(owner, 999, {"name": "Ninguém"})


class TestPartyDelete:
    def test_delete_detaches_login_and_removes_files(self, parties, owner, db_session):
        party = register_buyer(parties, owner, attachments=[doc()])
        blob = Path(parties.files.list_for("party", party.id)[0].path)
        assert blob.exists()

        parties.delete(owner, party.id)

        assert db_session.get(Party, party.id) is None
        user = db_session.execute(
            select(User).where(User.email == "marcos@example.com")
        ).scalar_one()
        assert user.party_id is None
        assert db_session.execute(select(StoredFile)).scalars().all() == []
        assert not blob.exists()

    def test_buyer_cannot_delete(self, parties, owner, buyer):
        party = register_buyer(parties, owner)

        with pytest.raises(PermissionDeniedError):
            parties.delete(buyer, party.id)


class TestPropertyService:
    def test_get_without_property(self, properties):
        assert properties.find() is None
        with pytest.raises(NotFoundError, match="No property registered"):
            properties.get()

    def test_create_with_contract_and_cover(self, properties, owner):
        prop = properties.create(
            owner,
            name="Apartamento Jardins",
            address="Alameda Santos, 45",
            sale_value="380.000,00",
            rent_value="2100",
            contract=doc("contrato.pdf"),
            cover_photo=FileUpload("fachada.jpg", b"\xff\xd8jpeg", "image/jpeg"),
        )

        assert prop.sale_value == Decimal("380000.00")
        assert prop.rent_value == Decimal("2100.00")
        assert properties.files.get(prop.contract_file_id).original_name == "contrato.pdf"
        assert properties.files.get(prop.cover_photo_id).mime == "image/jpeg"

    def test_only_one_property(self, properties, owner, sample_property):
        with pytest.raises(DataValidationError, match="already registered"):
            properties.create(owner, name="Outra", address="Rua B", sale_value=1, rent_value=1)

    def test_buyer_cannot_create(self, properties, buyer):
        with pytest.raises(PermissionDeniedError):
            properties.create(buyer, name="Casa", address="Rua A", sale_value=1, rent_value=1)

    def test_invalid_values_rejected(self, properties, owner, db_session):
        with pytest.raises(DataValidationError):
            properties.create(owner, name=" ", address="Rua A", sale_value=1, rent_value=1)
        with pytest.raises(DataValidationError, match="positive"):
            properties.create(owner, name="Casa", address="Rua A", sale_value=0, rent_value=1)

        assert db_session.execute(select(Property)).scalars().all() == []

    def test_cover_photo_must_be_image(self, properties, owner):
        with pytest.raises(DataValidationError, match="not allowed"):
            properties.create(
                owner,
                name="Casa",
                address="Rua A",
                sale_value=1,
                rent_value=1,
                cover_photo=doc("capa.pdf"),
            )

    def test_update_replaces_contract(self, properties, owner, sample_property, db_session):
        properties.update(owner, {}, contract=doc("v1.pdf"))
        first = properties.files.get(sample_property.contract_file_id)
        first_id, first_path = first.id, Path(first.path)

        properties.update(owner, {"rent_value": "2.750,00"}, contract=doc("v2.pdf"))

        assert sample_property.rent_value == Decimal("2750.00")
        assert properties.files.get(sample_property.contract_file_id).original_name == "v2.pdf"
        assert db_session.get(StoredFile, first_id) is None
        assert not first_path.exists()

    def test_update_adds_attachments(self, properties, owner, sample_property):
        properties.update(owner, {}, attachments=[doc("planta.pdf"), doc("iptu.pdf")])

        names = [f.original_name for f in properties.files.list_for("property", sample_property.id)]
        assert names == ["planta.pdf", "iptu.pdf"]

    def test_update_rejects_unknown_fields(self, properties, owner, sample_property):
        with pytest.raises(DataValidationError, match="Unknown property fields"):
            properties.update(owner, {"owner_id": 3})

    def test_buyer_cannot_update(self, properties, buyer, sample_property):
        with pytest.raises(PermissionDeniedError):
            properties.update(buyer, {"name": "Minha casa"})

"""Party service: the owner and buyer records and their login identities."""

import logging
import re

from sqlalchemy import select
from sqlalchemy.orm import Session

from ipe.models.party import Party
from ipe.models.stored_file import FilePurpose
from ipe.models.user import Role, User
from ipe.services.audit_service import AuditService
from ipe.services.auth_service import CallerContext, hash_password
from ipe.services.errors import DataValidationError, NotFoundError, PermissionDeniedError
from ipe.services.file_store import PARTY_ATTACHMENTS, FileStore, FileUpload, validate_files
from ipe.services.transaction import run_in_transaction

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_CPF_LENGTH = 11
UPDATABLE_FIELDS = ("kind", "name", "email", "phone", "rg", "issuing_agency", "cpf")


def parse_role(value: Role | str) -> Role:
    """Resolve a party kind / role from its value ("Proprietário", "Comprador")."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).strip())
    except ValueError:
        raise DataValidationError(
            f"Invalid party kind: {value!r}. Expected one of: "
            f"{', '.join(r.value for r in Role)}"
        ) from None


def normalize_email(email: str | None) -> str:
    value = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise DataValidationError(f"Invalid email: {email!r}")
    return value


def _require_text(value: str | None, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise DataValidationError(f"{label} is required")
    return text


def _check_cpf(cpf: str | None) -> str:
    value = _require_text(cpf, "CPF")
    if len(value) < MIN_CPF_LENGTH:
        raise DataValidationError(f"CPF must have at least {MIN_CPF_LENGTH} characters")
    return value


class PartyService:
    """Service for party operations.

    Args:
        db: Database session (the service commits it)
        files: FileStore bound to the same session
        initial_password: Password given to the login created with a party
    """

    def __init__(self, db: Session, files: FileStore, initial_password: str):
        self.db = db
        self.files = files
        self.initial_password = initial_password

    @staticmethod
    def _require_owner(caller: CallerContext, action: str) -> None:
        if not caller.is_owner:
            raise PermissionDeniedError(f"Only the owner can {action}")

    def list_all(self) -> list[Party]:
        return list(self.db.execute(select(Party).order_by(Party.id)).scalars())

    def get(self, party_id: int) -> Party:
        party = self.db.get(Party, party_id)
        if party is None:
            raise NotFoundError(f"Party {party_id} not found")
        return party

    def _ensure_email_free(self, email: str, exclude_user_id: int | None = None) -> None:
        existing = self.db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if existing is not None and existing.id != exclude_user_id:
            raise DataValidationError(f"A user with email {email} already exists")

    def create(
        self,
        caller: CallerContext,
        *,
        kind: Role | str,
        name: str,
        email: str,
        cpf: str,
        phone: str | None = None,
        rg: str | None = None,
        issuing_agency: str | None = None,
        attachments: list[FileUpload] | None = None,
    ) -> Party:
        """Register a party and its login identity.

        The login uses the party's email and role with the configured initial
        password. Up to three document attachments may be stored with it.

        Raises:
            PermissionDeniedError: caller is not the owner
            DataValidationError: bad fields, duplicate email or bad attachments
        """
        self._require_owner(caller, "register parties")
        role = parse_role(kind)
        party_name = _require_text(name, "Name")
        party_email = normalize_email(email)
        party_cpf = _check_cpf(cpf)
        uploads = attachments or []
        validate_files(uploads, PARTY_ATTACHMENTS)
        self._ensure_email_free(party_email)

        party = Party(
            kind=role,
            name=party_name,
            email=party_email,
            cpf=party_cpf,
            phone=phone,
            rg=rg,
            issuing_agency=issuing_agency,
        )
        password_hash = hash_password(self.initial_password)

        def mutate() -> None:
            self.db.add(party)
            self.db.flush()
            self.db.add(
                User(
                    email=party_email,
                    password_hash=password_hash,
                    name=party_name,
                    role=role,
                    party_id=party.id,
                )
            )
            for upload in uploads:
                self.files.save_upload(upload, "party", party.id, FilePurpose.ATTACHMENT)
            AuditService.log(
                self.db,
                "party",
                party.id,
                "create",
                actor_id=caller.caller_id,
                changes={"kind": role.value, "email": party_email},
            )

        run_in_transaction(self.db, self.files, mutate, "party")
        logger.info(f"Party {party.id} ({role.value}) registered with {len(uploads)} attachment(s)")
        return party

    def update(
        self,
        caller: CallerContext,
        party_id: int,
        changes: dict,
        attachments: list[FileUpload] | None = None,
    ) -> Party:
        """Partially update a party; new attachments are added to existing ones.

        Email and name changes are mirrored on the linked login identities.
        """
        self._require_owner(caller, "update parties")
        party = self.get(party_id)
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise DataValidationError(f"Unknown party fields: {', '.join(sorted(unknown))}")

        values = {k: v for k, v in changes.items() if v is not None}
        if "kind" in values:
            values["kind"] = parse_role(values["kind"])
        if "name" in values:
            values["name"] = _require_text(values["name"], "Name")
        if "cpf" in values:
            values["cpf"] = _check_cpf(values["cpf"])
        if "email" in values:
            values["email"] = normalize_email(values["email"])
            for user in party.users:
                self._ensure_email_free(values["email"], exclude_user_id=user.id)
            if not party.users:
                self._ensure_email_free(values["email"])

        uploads = attachments or []
        existing = len(self.files.list_for("party", party.id)) if uploads else 0
        validate_files(uploads, PARTY_ATTACHMENTS)
        if existing + len(uploads) > PARTY_ATTACHMENTS.max_count:
            raise DataValidationError(
                f"At most {PARTY_ATTACHMENTS.max_count} file(s) allowed per party"
            )

        def mutate() -> None:
            for field, value in values.items():
                setattr(party, field, value)
            for user in party.users:
                if "email" in values:
                    user.email = values["email"]
                if "name" in values:
                    user.name = values["name"]
                if "kind" in values:
                    user.role = values["kind"]
            for upload in uploads:
                self.files.save_upload(upload, "party", party.id, FilePurpose.ATTACHMENT)
            AuditService.log(
                self.db,
                "party",
                party.id,
                "update",
                actor_id=caller.caller_id,
                changes={
                    k: (v.value if isinstance(v, Role) else v) for k, v in values.items()
                },
            )

        run_in_transaction(self.db, self.files, mutate, "party")
        logger.info(f"Party {party.id} updated: {sorted(values)}")
        return party

    def delete(self, caller: CallerContext, party_id: int) -> None:
        """Delete a party and its attachments; linked logins are detached, not removed."""
        self._require_owner(caller, "delete parties")
        party = self.get(party_id)

        def mutate() -> None:
            for user in party.users:
                user.party_id = None
            owned = self.files.list_for("party", party.id)
            self.db.delete(party)
            self.db.flush()
            for stored in owned:
                self.files.delete(stored.id)
            AuditService.log(
                self.db,
                "party",
                party_id,
                "delete",
                actor_id=caller.caller_id,
                changes={"files": [f.id for f in owned]},
            )

        run_in_transaction(self.db, self.files, mutate, "party")
        logger.info(f"Party {party_id} deleted by user {caller.caller_id}")


__all__ = ["PartyService", "normalize_email", "parse_role"]

"""Property service: the single property under sale and its documents."""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ipe.models.property import Property
from ipe.models.stored_file import FilePurpose
from ipe.services.audit_service import AuditService
from ipe.services.auth_service import CallerContext
from ipe.services.errors import DataValidationError, NotFoundError, PermissionDeniedError
from ipe.services.file_store import (
    CONTRACT_FILES,
    COVER_PHOTO_FILES,
    PROPERTY_ATTACHMENTS,
    FileStore,
    FileUpload,
    validate_files,
)
from ipe.services.payable_service import parse_amount
from ipe.services.transaction import run_in_transaction

logger = logging.getLogger(__name__)

PROPERTY_ENTITY = "property"


class PropertyService:
    """Service for the property record.

    Only one property exists per deployment; create() refuses a second one.
    """

    def __init__(self, db: Session, files: FileStore):
        self.db = db
        self.files = files

    def find(self) -> Property | None:
        return self.db.execute(
            select(Property).order_by(Property.id).limit(1)
        ).scalar_one_or_none()

    def get(self) -> Property:
        prop = self.find()
        if prop is None:
            raise NotFoundError("No property registered")
        return prop

    @staticmethod
    def _validate_uploads(
        contract: FileUpload | None,
        cover_photo: FileUpload | None,
        attachments: list[FileUpload],
    ) -> None:
        if contract is not None:
            validate_files([contract], CONTRACT_FILES)
        if cover_photo is not None:
            validate_files([cover_photo], COVER_PHOTO_FILES)
        validate_files(attachments, PROPERTY_ATTACHMENTS)

    def _store_uploads(
        self,
        prop: Property,
        contract: FileUpload | None,
        cover_photo: FileUpload | None,
        attachments: list[FileUpload],
    ) -> list[int]:
        """Save uploads for prop; returns ids of replaced contract/cover files."""
        replaced = []
        if contract is not None:
            stored = self.files.save_upload(contract, PROPERTY_ENTITY, prop.id, FilePurpose.CONTRACT)
            if prop.contract_file_id is not None:
                replaced.append(prop.contract_file_id)
            prop.contract_file_id = stored.id
        if cover_photo is not None:
            stored = self.files.save_upload(
                cover_photo, PROPERTY_ENTITY, prop.id, FilePurpose.COVER_PHOTO
            )
            if prop.cover_photo_id is not None:
                replaced.append(prop.cover_photo_id)
            prop.cover_photo_id = stored.id
        for upload in attachments:
            self.files.save_upload(upload, PROPERTY_ENTITY, prop.id, FilePurpose.ATTACHMENT)
        return replaced

    def create(
        self,
        caller: CallerContext,
        *,
        name: str,
        address: str,
        sale_value: Decimal | str | float,
        rent_value: Decimal | str | float,
        contract: FileUpload | None = None,
        cover_photo: FileUpload | None = None,
        attachments: list[FileUpload] | None = None,
    ) -> Property:
        """Register the property with its optional contract, cover photo and attachments.

        Raises:
            PermissionDeniedError: caller is not the owner
            DataValidationError: property already registered, bad values or files
        """
        if not caller.is_owner:
            raise PermissionDeniedError("Only the owner can register the property")
        if self.find() is not None:
            raise DataValidationError("A property is already registered")

        prop = build_property(name, address, sale_value, rent_value)
        uploads = attachments or []
        self._validate_uploads(contract, cover_photo, uploads)

        def mutate() -> None:
            self.db.add(prop)
            self.db.flush()
            self._store_uploads(prop, contract, cover_photo, uploads)
            AuditService.log(
                self.db,
                PROPERTY_ENTITY,
                prop.id,
                "create",
                actor_id=caller.caller_id,
                changes={"sale_value": str(prop.sale_value), "rent_value": str(prop.rent_value)},
            )

        run_in_transaction(self.db, self.files, mutate, "property")
        logger.info(f"Property {prop.id} registered: {prop.name}")
        return prop

    def update(
        self,
        caller: CallerContext,
        changes: dict,
        contract: FileUpload | None = None,
        cover_photo: FileUpload | None = None,
        attachments: list[FileUpload] | None = None,
    ) -> Property:
        """Partially update the property.

        A new contract or cover photo replaces the previous file, which is
        deleted; attachments are added to the existing ones.
        """
        if not caller.is_owner:
            raise PermissionDeniedError("Only the owner can update the property")
        prop = self.get()

        values = {k: v for k, v in changes.items() if v is not None}
        unknown = set(values) - {"name", "address", "sale_value", "rent_value"}
        if unknown:
            raise DataValidationError(f"Unknown property fields: {', '.join(sorted(unknown))}")
        for field in ("name", "address"):
            if field in values:
                values[field] = _require_text(values[field], field.capitalize())
        for field in ("sale_value", "rent_value"):
            if field in values:
                values[field] = parse_amount(values[field])

        uploads = attachments or []
        self._validate_uploads(contract, cover_photo, uploads)

        def mutate() -> None:
            for field, value in values.items():
                setattr(prop, field, value)
            replaced = self._store_uploads(prop, contract, cover_photo, uploads)
            self.db.flush()
            for file_id in replaced:
                self.files.delete(file_id)
            AuditService.log(
                self.db,
                PROPERTY_ENTITY,
                prop.id,
                "update",
                actor_id=caller.caller_id,
                changes={k: str(v) for k, v in values.items()} | {"replaced_files": replaced},
            )

        run_in_transaction(self.db, self.files, mutate, "property")
        logger.info(f"Property {prop.id} updated: {sorted(values)}")
        return prop


def _require_text(value: str | None, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise DataValidationError(f"{label} is required")
    return text


def build_property(
    name: str,
    address: str,
    sale_value: Decimal | str | float,
    rent_value: Decimal | str | float,
) -> Property:
    """Validate property fields and build an unsaved Property."""
    return Property(
        name=_require_text(name, "Name"),
        address=_require_text(address, "Address"),
        sale_value=parse_amount(sale_value),
        rent_value=parse_amount(rent_value),
    )


__all__ = ["PropertyService", "build_property"]

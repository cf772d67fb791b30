"""StoredFile ORM model: metadata for uploaded blobs kept on disk."""

from enum import Enum

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ipe.models import Base, BaseModel
from ipe.models.user import enum_values


class FilePurpose(str, Enum):
    """Why a file was uploaded."""

    ATTACHMENT = "anexo"
    CONTRACT = "contrato"
    COVER_PHOTO = "foto_capa"
    EVIDENCE = "comprovante"


class StoredFile(Base, BaseModel):
    """Metadata for one uploaded file.

    Files are opaque blobs: created on upload, referenced by id, never mutated.
    (entity, entity_id) names the owning record, e.g. ("installment", 3).
    """

    __tablename__ = "stored_files"

    original_name: Mapped[str] = mapped_column(Text, nullable=False)
    path: Mapped[str] = mapped_column(Text, nullable=False, comment="Blob path on disk")
    mime: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False, comment="Size in bytes")
    entity: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    purpose: Mapped[FilePurpose] = mapped_column(
        SQLEnum(FilePurpose, native_enum=False, values_callable=enum_values, length=32),
        nullable=False,
        default=FilePurpose.ATTACHMENT,
    )

    __table_args__ = (Index("idx_stored_files_owner", "entity", "entity_id"),)

    def __repr__(self) -> str:
        return (
            f"<StoredFile(id={self.id}, original_name={self.original_name!r}, "
            f"entity={self.entity}, entity_id={self.entity_id}, purpose={self.purpose.value})>"
        )


__all__ = ["FilePurpose", "StoredFile"]

"""Disk-backed blob store with file metadata rows in the database.

Blobs are written under UPLOAD_DIR with a generated name
(<epoch-ms>-<random>.<ext>); StoredFile rows hold the original name, MIME
type, size and owning entity. The store never commits: callers commit the
session, then call finalize() (removing blobs of deleted rows) or, on
failure, discard_pending() (removing blobs written during the request).
"""

import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.orm import Session

from ipe.models.stored_file import FilePurpose, StoredFile
from ipe.services.errors import DataValidationError, NotFoundError, StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileValidationConfig:
    """Upload constraints for one form field."""

    max_count: int
    max_size_mb: float
    allowed_types: tuple[str, ...]


DOCUMENT_TYPES = ("pdf", "zip", "jpeg", "jpg", "png", "doc", "docx", "rtf")

EVIDENCE_FILES = FileValidationConfig(1, 2, ("pdf", "jpg", "jpeg", "png"))
PARTY_ATTACHMENTS = FileValidationConfig(3, 5, DOCUMENT_TYPES)
CONTRACT_FILES = FileValidationConfig(1, 10, ("pdf", "doc", "docx", "rtf"))
COVER_PHOTO_FILES = FileValidationConfig(1, 10, ("jpeg", "jpg", "png"))
PROPERTY_ATTACHMENTS = FileValidationConfig(10, 20, DOCUMENT_TYPES)


@dataclass(frozen=True)
class FileUpload:
    """An uploaded file as received from the client."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        if "." not in self.filename:
            return ""
        return self.filename.rsplit(".", 1)[-1].lower()


@dataclass(frozen=True)
class FileMetadata:
    """Who owns a blob and why it was uploaded."""

    original_name: str
    mime: str
    entity: str
    entity_id: int
    purpose: FilePurpose = FilePurpose.ATTACHMENT


def validate_files(uploads: list[FileUpload], config: FileValidationConfig) -> None:
    """Check count, extension allow-list and size ceiling.

    Raises:
        DataValidationError: naming the first offending file
    """
    if len(uploads) > config.max_count:
        raise DataValidationError(f"At most {config.max_count} file(s) allowed")

    max_bytes = config.max_size_mb * 1024 * 1024
    for upload in uploads:
        if not upload.extension or upload.extension not in config.allowed_types:
            raise DataValidationError(
                f"File type not allowed: {upload.filename}. "
                f"Accepted types: {', '.join(config.allowed_types)}"
            )
        if upload.size > max_bytes:
            raise DataValidationError(
                f"File too large: {upload.filename}. Maximum size: {config.max_size_mb:g}MB"
            )


class FileStore:
    """Save, read and delete uploaded blobs and their metadata."""

    def __init__(self, db: Session, upload_dir: str | Path):
        self.db = db
        self.upload_dir = Path(upload_dir)
        self._written: list[Path] = []
        self._pending_removals: list[Path] = []

    def _generate_name(self, original_name: str) -> str:
        extension = original_name.rsplit(".", 1)[-1].lower() if "." in original_name else "bin"
        return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}.{extension}"

    def save(self, content: bytes, metadata: FileMetadata) -> StoredFile:
        """Write a blob and add its metadata row (flushed, not committed).

        Returns:
            StoredFile with its id assigned

        Raises:
            StorageError: blob could not be written
        """
        path = self.upload_dir / self._generate_name(metadata.original_name)
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to write blob {path}: {e}")
            raise StorageError("Could not store uploaded file") from e
        self._written.append(path)

        stored = StoredFile(
            original_name=metadata.original_name,
            path=str(path),
            mime=metadata.mime,
            size=len(content),
            entity=metadata.entity,
            entity_id=metadata.entity_id,
            purpose=metadata.purpose,
        )
        self.db.add(stored)
        self.db.flush()
        logger.info(
            "Stored file %s (%d bytes) for %s %s as %s",
            stored.original_name,
            stored.size,
            metadata.entity,
            metadata.entity_id,
            metadata.purpose.value,
        )
        return stored

    def save_upload(
        self, upload: FileUpload, entity: str, entity_id: int, purpose: FilePurpose
    ) -> StoredFile:
        """Save a client upload for an owning record."""
        return self.save(
            upload.content,
            FileMetadata(
                original_name=upload.filename,
                mime=upload.content_type or "application/octet-stream",
                entity=entity,
                entity_id=entity_id,
                purpose=purpose,
            ),
        )

    def get(self, file_id: int) -> StoredFile:
        """Get file metadata or raise NotFoundError."""
        stored = self.db.get(StoredFile, file_id)
        if stored is None:
            raise NotFoundError(f"File {file_id} not found")
        return stored

    def read(self, file_id: int) -> tuple[bytes, StoredFile]:
        """Read a blob and its metadata."""
        stored = self.get(file_id)
        try:
            return Path(stored.path).read_bytes(), stored
        except OSError as e:
            logger.error(f"Blob for file {file_id} unreadable at {stored.path}: {e}")
            raise StorageError(f"File {file_id} content is unavailable") from e

    def list_for(self, entity: str, entity_id: int) -> list[StoredFile]:
        """List files owned by one record, oldest first."""
        return list(
            self.db.execute(
                select(StoredFile)
                .where(StoredFile.entity == entity, StoredFile.entity_id == entity_id)
                .order_by(StoredFile.id)
            ).scalars()
        )

    def delete(self, file_id: int) -> None:
        """Delete the metadata row; the blob goes away on finalize()."""
        stored = self.get(file_id)
        self._pending_removals.append(Path(stored.path))
        self.db.delete(stored)

    def finalize(self) -> None:
        """Forget written blobs and remove blobs of deleted rows. Call after commit."""
        for path in self._pending_removals:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove blob {path}: {e}")
        self._pending_removals.clear()
        self._written.clear()

    def discard_pending(self) -> None:
        """Remove blobs written since the last finalize(). Call after rollback."""
        for path in self._written:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove orphan blob {path}: {e}")
        self._written.clear()
        self._pending_removals.clear()


__all__ = [
    "CONTRACT_FILES",
    "COVER_PHOTO_FILES",
    "EVIDENCE_FILES",
    "FileMetadata",
    "FileStore",
    "FileUpload",
    "FileValidationConfig",
    "PARTY_ATTACHMENTS",
    "PROPERTY_ATTACHMENTS",
    "validate_files",
]

"""Single-commit helper shared by services that also write blobs."""

import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ipe.services.errors import ConflictError, StorageError
from ipe.services.file_store import FileStore

logger = logging.getLogger(__name__)


def run_in_transaction(
    db: Session,
    files: FileStore | None,
    mutate: Callable[[], None],
    description: str,
) -> None:
    """Run a mutation and commit it, or roll back rows and written blobs.

    Args:
        db: Session to commit
        files: FileStore used by the mutation (None if it writes no blobs)
        mutate: Callable doing the adds/updates/deletes
        description: What is being saved, for log messages

    Raises:
        ConflictError: a versioned row changed underneath us
        StorageError: any other database failure
        Whatever mutate raised, after rolling back
    """
    try:
        mutate()
        db.commit()
    except StaleDataError as e:
        _rollback(db, files)
        logger.warning(f"Concurrent update while saving {description}: {e}")
        raise ConflictError() from e
    except SQLAlchemyError as e:
        _rollback(db, files)
        logger.error(f"Database error while saving {description}: {e}", exc_info=True)
        raise StorageError("Could not save changes") from e
    except Exception:
        _rollback(db, files)
        raise
    if files is not None:
        files.finalize()


def _rollback(db: Session, files: FileStore | None) -> None:
    db.rollback()
    if files is not None:
        files.discard_pending()


__all__ = ["run_in_transaction"]

"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


# Import models to register them with Base (after Base is defined)
# This must be after Base declaration to avoid circular imports
from ipe.models.audit_log import AuditLog  # noqa: E402
from ipe.models.party import Party  # noqa: E402
from ipe.models.payable import (  # noqa: E402
    PAYABLE_MODELS,
    CondoFeeEntry,
    Installment,
    PayableRecord,
    PaymentStatus,
    RentEntry,
)
from ipe.models.property import Property  # noqa: E402
from ipe.models.setup_config import SetupConfig  # noqa: E402
from ipe.models.stored_file import FilePurpose, StoredFile  # noqa: E402
from ipe.models.user import Role, User  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "AuditLog",
    "CondoFeeEntry",
    "FilePurpose",
    "Installment",
    "PAYABLE_MODELS",
    "Party",
    "PayableRecord",
    "PaymentStatus",
    "Property",
    "RentEntry",
    "Role",
    "SetupConfig",
    "StoredFile",
    "User",
]

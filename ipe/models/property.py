"""Property ORM model for the single managed real-estate asset."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from ipe.models import Base, BaseModel


class Property(Base, BaseModel):
    """The property under sale.

    One row per deployment. rent_value is the canonical monthly rent and the
    default amount for new rent entries.
    """

    __tablename__ = "properties"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    sale_value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Agreed sale price of the property",
    )
    rent_value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Monthly rent, default for new rent entries",
    )

    contract_file_id: Mapped[int | None] = mapped_column(
        ForeignKey("stored_files.id", ondelete="SET NULL"),
        nullable=True,
    )
    cover_photo_id: Mapped[int | None] = mapped_column(
        ForeignKey("stored_files.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Property(id={self.id}, name={self.name!r}, sale_value={self.sale_value}, "
            f"rent_value={self.rent_value})>"
        )


__all__ = ["Property"]

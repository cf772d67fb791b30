"""Setup configuration model: whether the onboarding wizard has run."""

from datetime import date

from sqlalchemy import Boolean, Date
from sqlalchemy.orm import Mapped, mapped_column

from ipe.models import Base, BaseModel


class SetupConfig(Base, BaseModel):
    """Single-row table written once by the setup wizard."""

    __tablename__ = "setup_config"

    initial_setup_done: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="True once the onboarding wizard completed",
    )
    contract_start_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Start date of the sale contract",
    )

    def __repr__(self) -> str:
        return (
            f"<SetupConfig(id={self.id}, initial_setup_done={self.initial_setup_done}, "
            f"contract_start_date={self.contract_start_date})>"
        )


__all__ = ["SetupConfig"]

"""User ORM model: login identities carrying exactly one role."""

from enum import Enum

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ipe.models import Base, BaseModel


class Role(str, Enum):
    """Closed set of caller roles.

    OWNER (Proprietário) has full write access and sole authority to confirm
    payments. BUYER (Comprador) may submit payment evidence but not confirm it.
    """

    OWNER = "Proprietário"
    BUYER = "Comprador"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Persist enum values (not member names) in string columns."""
    return [member.value for member in enum_cls]


class User(Base, BaseModel):
    """Login identity, optionally linked to the Party it represents."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True, comment="Login email"
    )
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        SQLEnum(Role, native_enum=False, values_callable=enum_values, length=32),
        nullable=False,
        comment="Proprietário or Comprador",
    )
    party_id: Mapped[int | None] = mapped_column(
        ForeignKey("parties.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    party: Mapped["Party | None"] = relationship(  # noqa: F821
        "Party",
        back_populates="users",
        foreign_keys=[party_id],
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r}, role={self.role.value})>"


__all__ = ["Role", "User", "enum_values"]

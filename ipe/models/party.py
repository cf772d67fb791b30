"""Party ORM model for the owner and buyer of the property."""

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ipe.models import Base, BaseModel
from ipe.models.user import Role, enum_values


class Party(Base, BaseModel):
    """A contract party: the owner (Proprietário) or the buyer (Comprador).

    National ID fields (cpf, rg, issuing_agency) are stored as entered; the
    only format check is the minimum CPF length applied by the service.
    """

    __tablename__ = "parties"

    kind: Mapped[Role] = mapped_column(
        SQLEnum(Role, native_enum=False, values_callable=enum_values, length=32),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    rg: Mapped[str | None] = mapped_column(String(50), nullable=True)
    issuing_agency: Mapped[str | None] = mapped_column(
        String(50), nullable=True, comment="Órgão emissor of the RG"
    )
    cpf: Mapped[str] = mapped_column(String(14), nullable=False)

    users: Mapped[list["User"]] = relationship(  # noqa: F821
        "User",
        back_populates="party",
        foreign_keys="User.party_id",
    )

    def __repr__(self) -> str:
        return f"<Party(id={self.id}, kind={self.kind.value}, name={self.name!r})>"


__all__ = ["Party"]

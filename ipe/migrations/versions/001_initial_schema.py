"""Initial schema: parties, users, files, property, payable records, audit and setup.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

ROLE_VALUES = ("Proprietário", "Comprador")
STATUS_VALUES = ("pendente", "pagamento_informado", "pago")
PURPOSE_VALUES = ("anexo", "contrato", "foto_capa", "comprovante")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
    ]


def _payable_columns() -> list[sa.Column]:
    return [
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*STATUS_VALUES, name="paymentstatus", native_enum=False, length=32),
            nullable=False,
            server_default="pendente",
        ),
        sa.Column(
            "paid_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Set when status becomes pago, cleared otherwise",
        ),
        sa.Column(
            "evidence_id", sa.Integer(), nullable=True, comment="Proof of payment (comprovante)"
        ),
        sa.Column(
            "version",
            sa.Integer(),
            nullable=False,
            server_default="1",
            comment="Optimistic concurrency counter",
        ),
    ]


def _payable_constraints(table: str) -> list:
    return [
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["evidence_id"], ["stored_files.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.Index(f"ix_{table}_property_id", "property_id"),
        sa.Index(f"ix_{table}_status", "status"),
    ]


def upgrade() -> None:
    op.create_table(
        "parties",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "kind",
            sa.Enum(*ROLE_VALUES, name="role", native_enum=False, length=32),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("rg", sa.String(length=50), nullable=True),
        sa.Column(
            "issuing_agency", sa.String(length=50), nullable=True, comment="Órgão emissor of the RG"
        ),
        sa.Column("cpf", sa.String(length=14), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_parties_kind", "kind"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, comment="Login email"),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "role",
            sa.Enum(*ROLE_VALUES, name="role", native_enum=False, length=32),
            nullable=False,
            comment="Proprietário or Comprador",
        ),
        sa.Column("party_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["party_id"], ["parties.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_users_email", "email", unique=True),
        sa.Index("ix_users_party_id", "party_id"),
    )

    op.create_table(
        "stored_files",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("original_name", sa.Text(), nullable=False),
        sa.Column("path", sa.Text(), nullable=False, comment="Blob path on disk"),
        sa.Column("mime", sa.String(length=255), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False, comment="Size in bytes"),
        sa.Column("entity", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column(
            "purpose",
            sa.Enum(*PURPOSE_VALUES, name="filepurpose", native_enum=False, length=32),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("idx_stored_files_owner", "entity", "entity_id"),
    )

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column(
            "sale_value",
            sa.Numeric(12, 2),
            nullable=False,
            comment="Agreed sale price of the property",
        ),
        sa.Column(
            "rent_value",
            sa.Numeric(12, 2),
            nullable=False,
            comment="Monthly rent, default for new rent entries",
        ),
        sa.Column("contract_file_id", sa.Integer(), nullable=True),
        sa.Column("cover_photo_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["contract_file_id"], ["stored_files.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["cover_photo_id"], ["stored_files.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "installments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        *_payable_columns(),
        *_timestamps(),
        *_payable_constraints("installments"),
        sa.UniqueConstraint("property_id", "number", name="uq_installment_number"),
        sa.CheckConstraint("amount > 0", name="ck_installment_amount_positive"),
    )

    for table, prefix in (("rent_entries", "rent"), ("condo_fee_entries", "condo_fee")):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("month", sa.Integer(), nullable=False),
            sa.Column("year", sa.Integer(), nullable=False),
            *_payable_columns(),
            *_timestamps(),
            *_payable_constraints(table),
            sa.UniqueConstraint("property_id", "year", "month", name=f"uq_{prefix}_period"),
            sa.CheckConstraint("amount > 0", name=f"ck_{prefix}_amount_positive"),
            sa.CheckConstraint("month BETWEEN 1 AND 12", name=f"ck_{prefix}_month"),
            sa.Index(f"idx_{prefix}_period", "year", "month"),
        )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "setup_config",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "initial_setup_done",
            sa.Boolean(),
            nullable=False,
            server_default="0",
            comment="True once the onboarding wizard completed",
        ),
        sa.Column(
            "contract_start_date",
            sa.Date(),
            nullable=True,
            comment="Start date of the sale contract",
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("setup_config")
    op.drop_table("audit_logs")
    op.drop_table("condo_fee_entries")
    op.drop_table("rent_entries")
    op.drop_table("installments")
    op.drop_table("properties")
    op.drop_table("stored_files")
    op.drop_table("users")
    op.drop_table("parties")

"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


transaction_type_enum = sa.Enum(
    "RECEIPT", "ISSUE", "TRANSFER_OUT", "TRANSFER_IN",
    "ADJUST_INCREASE", "ADJUST_DECREASE", "DESTRUCTION",
    name="transaction_type_enum", create_constraint=True,
)
compatibility_group_enum = sa.Enum(
    "A", "B", "C", "D", "E", "F", "G", "H", "J", "K", "L", "N", "S",
    name="compatibility_group_enum", create_constraint=True,
)
explosive_type_enum = sa.Enum(
    "PRIMARY", "SECONDARY", "PROPELLANT", "BLASTING_AGENT",
    name="explosive_type_enum", create_constraint=True,
)
unit_of_measure_enum = sa.Enum(
    "EACH", "KG", "LB", "BOX", "CASE",
    name="unit_of_measure_enum", create_constraint=True,
)


def upgrade() -> None:
    op.create_table(
        "magazines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("location", sa.String(200), nullable=False),
        sa.Column("max_net_explosive_weight_kg", sa.Numeric(19, 4), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_magazines_code", "magazines", ["code"], unique=True)
    op.create_index("ix_magazines_location", "magazines", ["location"])

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("un_number", sa.String(20), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("compatibility_group", compatibility_group_enum, nullable=False),
        sa.Column("explosive_type", explosive_type_enum, nullable=True),
        sa.Column("unit", unit_of_measure_enum, nullable=False),
        sa.Column(
            "net_explosive_weight_per_unit_kg", sa.Numeric(19, 4), nullable=False
        ),
        sa.Column("manufacturer", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_products_name", "products", ["name"])
    op.create_index("ix_products_un_number", "products", ["un_number"], unique=True)

    op.create_table(
        "inventory_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transaction_date", sa.DateTime(), nullable=False),
        sa.Column("transaction_type", transaction_type_enum, nullable=False),
        sa.Column(
            "magazine_from_id", sa.Integer(),
            sa.ForeignKey("magazines.id"), nullable=True,
        ),
        sa.Column(
            "magazine_to_id", sa.Integer(),
            sa.ForeignKey("magazines.id"), nullable=True,
        ),
        sa.Column(
            "product_id", sa.Integer(),
            sa.ForeignKey("products.id"), nullable=False,
        ),
        sa.Column("quantity", sa.Numeric(19, 4), nullable=False),
        sa.Column("reference_number", sa.String(50), nullable=False),
        sa.Column("authorization_number", sa.String(50), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("entered_by_user_id", sa.String(100), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=True),
        sa.Column("transfer_group_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    for column in (
        "transaction_date", "magazine_from_id", "magazine_to_id",
        "product_id", "entered_by_user_id", "transfer_group_id",
    ):
        op.create_index(
            f"ix_inventory_transactions_{column}",
            "inventory_transactions",
            [column],
        )

    op.create_table(
        "inventory_reconciliations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("reconciliation_date", sa.DateTime(), nullable=False),
        sa.Column(
            "magazine_id", sa.Integer(),
            sa.ForeignKey("magazines.id"), nullable=False,
        ),
        sa.Column(
            "product_id", sa.Integer(),
            sa.ForeignKey("products.id"), nullable=False,
        ),
        sa.Column("physical_count", sa.Numeric(19, 4), nullable=False),
        sa.Column("system_count_at_time", sa.Numeric(19, 4), nullable=False),
        sa.Column("variance", sa.Numeric(19, 4), nullable=False),
        sa.Column("variance_reason", sa.String(500), nullable=True),
        sa.Column("entered_by_user_id", sa.String(100), nullable=False),
        sa.Column("resolved", sa.Boolean(), nullable=False),
        sa.Column("resolved_by_user_id", sa.String(100), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.Column(
            "adjustment_transaction_id", sa.Integer(),
            sa.ForeignKey("inventory_transactions.id"), nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "ix_inventory_reconciliations_product_id",
        "inventory_reconciliations",
        ["product_id"],
    )
    op.create_index(
        "ix_inventory_reconciliations_variance",
        "inventory_reconciliations",
        ["variance"],
    )
    op.create_index(
        "ix_reconciliation_magazine_date",
        "inventory_reconciliations",
        ["magazine_id", "reconciliation_date"],
    )
    op.create_index(
        "uq_reconciliation_unresolved_pair",
        "inventory_reconciliations",
        ["magazine_id", "product_id"],
        unique=True,
        postgresql_where=sa.text("resolved = false"),
        sqlite_where=sa.text("resolved = 0"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("actor_user_id", sa.String(100), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("inventory_reconciliations")
    op.drop_table("inventory_transactions")
    op.drop_table("products")
    op.drop_table("magazines")

    bind = op.get_bind()
    for enum_type in (
        unit_of_measure_enum,
        explosive_type_enum,
        compatibility_group_enum,
        transaction_type_enum,
    ):
        enum_type.drop(bind, checkfirst=True)

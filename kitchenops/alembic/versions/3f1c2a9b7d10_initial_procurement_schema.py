"""initial procurement schema

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-12
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EVENT_TYPE = sa.Enum("banquet", "a_la_carte", "sports_multi", "coffee", "buffet", "other", name="event_type")
PO_STATUS = sa.Enum("draft", "sent", "partial", "received", "cancelled", name="po_status")


def _org_fk() -> sa.Column:
    return sa.Column(
        "organization_id",
        sa.BigInteger(),
        sa.ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="Europe/Madrid"),
    )
    op.create_table(
        "units",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("abbreviation", sa.String(16), nullable=False, unique=True),
    )
    op.create_table(
        "product_families",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        _org_fk(),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("safety_buffer_pct", sa.Numeric(4, 2)),
        sa.UniqueConstraint("organization_id", "name", name="uq_family_org_name"),
        sa.CheckConstraint("safety_buffer_pct >= 1.0", name="ck_family_buffer_ge_one"),
    )
    op.create_table(
        "suppliers",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        _org_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_email", sa.String(255)),
        sa.Column("contact_phone", sa.String(64)),
        sa.Column("lead_time_days", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("cut_off_time", sa.Time()),
        sa.Column("delivery_days", sa.JSON(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("organization_id", "name", name="uq_supplier_org_name"),
        sa.CheckConstraint("lead_time_days >= 0", name="ck_supplier_lead_time_nonneg"),
    )
    op.create_table(
        "ingredients",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        _org_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("unit_id", sa.BigInteger(), sa.ForeignKey("units.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("cost_price", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("stock_current", sa.Numeric(14, 3), nullable=False, server_default="0"),
        sa.Column("family_id", sa.BigInteger(), sa.ForeignKey("product_families.id", ondelete="SET NULL")),
        sa.Column("supplier_id", sa.BigInteger(), sa.ForeignKey("suppliers.id", ondelete="SET NULL")),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("cost_price >= 0", name="ck_ingredient_cost_nonneg"),
    )
    op.create_index("ix_ingredients_org_supplier", "ingredients", ["organization_id", "supplier_id"])

    op.create_table(
        "recipes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        _org_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("servings", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("servings >= 1", name="ck_recipe_servings_pos"),
    )
    op.create_table(
        "recipe_ingredients",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("recipe_id", sa.BigInteger(), sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ingredient_id", sa.BigInteger(), sa.ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("unit_id", sa.BigInteger(), sa.ForeignKey("units.id", ondelete="RESTRICT"), nullable=False),
    )
    op.create_index("ix_recipe_ingredients_recipe_id", "recipe_ingredients", ["recipe_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        _org_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("event_type", EVENT_TYPE, nullable=False),
        sa.Column("pax", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("date_start", sa.Date()),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("pax >= 0", name="ck_event_pax_nonneg"),
    )
    op.create_index("ix_events_org_date", "events", ["organization_id", "date_start"])

    op.create_table(
        "event_menus",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("event_id", sa.BigInteger(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("recipe_id", sa.BigInteger(), sa.ForeignKey("recipes.id", ondelete="SET NULL")),
        sa.Column("qty_forecast", sa.Numeric(14, 3)),
    )
    op.create_index("ix_event_menus_event_id", "event_menus", ["event_id"])

    op.create_table(
        "event_direct_ingredients",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("event_id", sa.BigInteger(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ingredient_id", sa.BigInteger(), sa.ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("unit_id", sa.BigInteger(), sa.ForeignKey("units.id", ondelete="RESTRICT"), nullable=False),
    )
    op.create_index("ix_event_direct_ingredients_event_id", "event_direct_ingredients", ["event_id"])

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        _org_fk(),
        sa.Column("supplier_id", sa.BigInteger(), sa.ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("event_id", sa.BigInteger(), sa.ForeignKey("events.id", ondelete="SET NULL")),
        sa.Column("status", PO_STATUS, nullable=False, server_default="draft"),
        sa.Column("order_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("delivery_date_estimated", sa.Date()),
        sa.Column("delivery_date_actual", sa.DateTime(timezone=True)),
        sa.Column("total_cost", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("total_cost >= 0", name="ck_po_total_nonneg"),
    )
    op.create_index("ix_purchase_orders_org_supplier", "purchase_orders", ["organization_id", "supplier_id"])
    op.create_index("ix_purchase_orders_event_id", "purchase_orders", ["event_id"])

    op.create_table(
        "purchase_order_items",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "purchase_order_id",
            sa.BigInteger(),
            sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ingredient_id", sa.BigInteger(), sa.ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("unit_id", sa.BigInteger(), sa.ForeignKey("units.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity_ordered", sa.Numeric(14, 3), nullable=False),
        sa.Column("quantity_received", sa.Numeric(14, 3), nullable=False, server_default="0"),
        sa.Column("unit_price", sa.Numeric(14, 4), nullable=False),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False),
        sa.CheckConstraint("quantity_ordered > 0", name="ck_po_item_qty_pos"),
        sa.CheckConstraint("unit_price >= 0", name="ck_po_item_unit_price_nonneg"),
    )
    op.create_index("ix_purchase_order_items_purchase_order_id", "purchase_order_items", ["purchase_order_id"])


def downgrade() -> None:
    for table in (
        "purchase_order_items",
        "purchase_orders",
        "event_direct_ingredients",
        "event_menus",
        "events",
        "recipe_ingredients",
        "recipes",
        "ingredients",
        "suppliers",
        "product_families",
        "units",
        "organizations",
    ):
        op.drop_table(table)

    # types Postgres créés par create_table
    PO_STATUS.drop(op.get_bind(), checkfirst=True)
    EVENT_TYPE.drop(op.get_bind(), checkfirst=True)

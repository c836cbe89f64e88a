"""Initial schema — catalog stand-ins, rules, constraints, customizations, temp files.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "product_types",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("category", sa.String(30), nullable=False, server_default="MODELO_PRONTO"),
        sa.Column("delivery_type", sa.String(30), nullable=False, server_default="PRONTA_ENTREGA"),
        sa.Column("stock_quantity", sa.Integer, nullable=True),
        sa.Column("has_3d_preview", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "products",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("type_id", UUID(as_uuid=True), sa.ForeignKey("product_types.id"), nullable=False),
    )

    op.create_table(
        "additionals",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
    )

    op.create_table(
        "orders",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "order_items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("order_id", UUID(as_uuid=True), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
    )

    op.create_table(
        "product_rules",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("product_type_id", UUID(as_uuid=True), sa.ForeignKey("product_types.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rule_type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("required", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("max_items", sa.Integer, nullable=True),
        sa.Column("conflict_with", sa.JSON, nullable=False),
        sa.Column("dependencies", sa.JSON, nullable=False),
        sa.Column("available_options", sa.JSON, nullable=True),
        sa.Column("preview_image_url", sa.String(500), nullable=True),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_product_rules_product_type_id", "product_rules", ["product_type_id"])

    op.create_table(
        "item_constraints",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("target_item_id", UUID(as_uuid=True), nullable=False),
        sa.Column("target_item_type", sa.String(20), nullable=False),
        sa.Column("constraint_type", sa.String(30), nullable=False),
        sa.Column("related_item_id", UUID(as_uuid=True), nullable=False),
        sa.Column("related_item_type", sa.String(20), nullable=False),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("target_item_name", sa.String(200), nullable=True),
        sa.Column("related_item_name", sa.String(200), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_item_constraints_target_item_id", "item_constraints", ["target_item_id"])
    op.create_index("ix_item_constraints_related_item_id", "item_constraints", ["related_item_id"])

    op.create_table(
        "order_item_customizations",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("order_item_id", UUID(as_uuid=True), sa.ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("customization_rule_id", UUID(as_uuid=True), nullable=True),
        sa.Column("customization_type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("customization_data", sa.JSON, nullable=False),
        sa.Column("selected_layout_id", UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_order_item_customizations_order_item_id", "order_item_customizations", ["order_item_id"])

    op.create_table(
        "temp_files",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("filename", sa.String(255), nullable=False, unique=True),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=True),
        sa.Column("file_size", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("order_id", UUID(as_uuid=True), nullable=True),
        sa.Column("promoted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_temp_files_expires_at", "temp_files", ["expires_at"])
    op.create_index("ix_temp_files_order_id", "temp_files", ["order_id"])


def downgrade() -> None:
    op.drop_table("temp_files")
    op.drop_table("order_item_customizations")
    op.drop_table("item_constraints")
    op.drop_table("product_rules")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("additionals")
    op.drop_table("products")
    op.drop_table("product_types")

"""initial schema

Revision ID: 2026_10_19_0000
Revises:
Create Date: 2026-10-19 08:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "2026_10_19_0000"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    ]


def _id() -> sa.Column:
    return sa.Column(
        "id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")
    )


def upgrade() -> None:
    """Create initial database schema."""

    # ========================================================================
    # Clients
    # ========================================================================
    op.create_table(
        "clients",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("phone_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("role", sa.String(20), nullable=False, server_default="USER"),
        sa.Column("subscription_type", sa.String(20), nullable=False, server_default="BASIC"),
        sa.Column("subscription_active", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("subscription_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_card_number", sa.String(19), nullable=True),
        sa.Column("payment_card_holder", sa.String(255), nullable=True),
        sa.Column("payment_card_expiry_month", sa.Integer, nullable=True),
        sa.Column("payment_card_expiry_year", sa.Integer, nullable=True),
        sa.Column("payment_card_cvv", sa.String(4), nullable=True),
        *_timestamps(),
    )

    # ========================================================================
    # Stores (app_id foreign key added once apps exists)
    # ========================================================================
    op.create_table(
        "stores",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(50), nullable=True),
        sa.Column("contact_address", sa.String(500), nullable=True),
        sa.Column("contact_city", sa.String(255), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            "owner_id",
            UUID(as_uuid=True),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("app_id", UUID(as_uuid=True), nullable=True, unique=True),
        sa.Column("bank_account_number", sa.String(64), nullable=True),
        sa.Column("bank_account_holder", sa.String(255), nullable=True),
        sa.Column("bank_name", sa.String(255), nullable=True),
        sa.Column("bank_iban", sa.String(34), nullable=True),
        sa.Column("bank_swift_code", sa.String(11), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_stores_owner_id", "stores", ["owner_id"])

    for table in ("store_managers", "store_couriers"):
        op.create_table(
            table,
            sa.Column(
                "store_id",
                UUID(as_uuid=True),
                sa.ForeignKey("stores.id", ondelete="CASCADE"),
                primary_key=True,
            ),
            sa.Column(
                "client_id",
                UUID(as_uuid=True),
                sa.ForeignKey("clients.id", ondelete="CASCADE"),
                primary_key=True,
            ),
        )

    # ========================================================================
    # Apps
    # ========================================================================
    op.create_table(
        "apps",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("version", sa.String(20), nullable=False, server_default="1.0.0"),
        sa.Column("icon_url", sa.String(1000), nullable=True),
        sa.Column("splash_screen_url", sa.String(1000), nullable=True),
        sa.Column("primary_color", sa.String(32), nullable=False),
        sa.Column("secondary_color", sa.String(32), nullable=False),
        sa.Column("target_platforms", ARRAY(sa.String), nullable=False, server_default="{}"),
        sa.Column("default_language", sa.String(10), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("keywords", ARRAY(sa.String), nullable=False, server_default="{}"),
        sa.Column("screenshots", ARRAY(sa.String), nullable=False, server_default="{}"),
        sa.Column("app_url", sa.String(1000), nullable=True),
        sa.Column(
            "store_id",
            UUID(as_uuid=True),
            sa.ForeignKey("stores.id", ondelete="CASCADE"),
            nullable=True,
            unique=True,
        ),
        *_timestamps(),
    )
    op.create_foreign_key(
        "fk_stores_app_id", "stores", "apps", ["app_id"], ["id"], ondelete="SET NULL"
    )

    # ========================================================================
    # Products and size inventory
    # ========================================================================
    op.create_table(
        "products",
        _id(),
        sa.Column(
            "store_id",
            UUID(as_uuid=True),
            sa.ForeignKey("stores.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_pre_order", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_discount", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("discount_percent", sa.Integer, nullable=False, server_default="0"),
        sa.Column("img_urls", ARRAY(sa.String), nullable=False, server_default="{}"),
        sa.Column("order_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_product_amount_non_negative"),
        sa.CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="ck_product_discount_percent_range",
        ),
    )
    op.create_index("idx_products_store_id", "products", ["store_id"])
    op.create_index("idx_products_created_at", "products", ["created_at"])

    op.create_table(
        "product_sizes",
        _id(),
        sa.Column(
            "product_id",
            UUID(as_uuid=True),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("size", sa.String(5), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        *_timestamps(),
        sa.CheckConstraint("quantity >= 0", name="ck_product_size_quantity"),
    )
    op.create_index("ix_product_sizes_product_id", "product_sizes", ["product_id"])

    # ========================================================================
    # Invites
    # ========================================================================
    op.create_table(
        "invites",
        _id(),
        sa.Column("token", sa.String(128), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column(
            "store_id",
            UUID(as_uuid=True),
            sa.ForeignKey("stores.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_used", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "used_by_id",
            UUID(as_uuid=True),
            sa.ForeignKey("clients.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("revoked", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_invites_store_id", "invites", ["store_id"])
    op.create_index("idx_invites_email_store", "invites", ["email", "store_id"])

    # ========================================================================
    # Transactions
    # ========================================================================
    op.create_table(
        "transactions",
        _id(),
        sa.Column(
            "store_id",
            UUID(as_uuid=True),
            sa.ForeignKey("stores.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("external_id", sa.String(255), nullable=True),
        sa.Column("payment_method", sa.String(100), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="UAH"),
        sa.Column("processing_fee", sa.Numeric(12, 2), nullable=True),
        sa.Column("net_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("reference_order_id", sa.String(255), nullable=True),
        sa.Column("metadata", sa.Text, nullable=True),
        *_timestamps(),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_transactions_store_created", "transactions", ["store_id", "created_at"])
    op.create_index(
        "idx_transactions_external_id",
        "transactions",
        ["external_id"],
        postgresql_where=sa.text("external_id IS NOT NULL"),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("idx_transactions_external_id", table_name="transactions")
    op.drop_index("idx_transactions_store_created", table_name="transactions")
    op.drop_table("transactions")

    op.drop_index("idx_invites_email_store", table_name="invites")
    op.drop_index("idx_invites_store_id", table_name="invites")
    op.drop_table("invites")

    op.drop_index("ix_product_sizes_product_id", table_name="product_sizes")
    op.drop_table("product_sizes")
    op.drop_index("idx_products_created_at", table_name="products")
    op.drop_index("idx_products_store_id", table_name="products")
    op.drop_table("products")

    op.drop_constraint("fk_stores_app_id", "stores", type_="foreignkey")
    op.drop_table("apps")
    op.drop_table("store_couriers")
    op.drop_table("store_managers")
    op.drop_index("ix_stores_owner_id", table_name="stores")
    op.drop_table("stores")
    op.drop_table("clients")

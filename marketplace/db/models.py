"""
Database Models - SQLAlchemy ORM models with strict typing.

All columns use Mapped[] type annotations. Relationships default to
lazy="raise": callers state which associations to materialize, and an
association that was not loaded is never fetched implicitly.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    ARRAY,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    inspect,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from marketplace.models.api import (
    ClientRole,
    SubscriptionType,
    TransactionStatus,
)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


def loaded(entity: object, attribute: str) -> Any | None:
    """
    Return an attribute only if it is already materialized on the entity.

    Returns None for relationships that were not loaded, so callers can tell
    "not loaded" apart from "loaded and empty".
    """
    state = inspect(entity, raiseerr=False)
    if state is not None and attribute in state.unloaded:
        return None
    return getattr(entity, attribute, None)


store_managers = Table(
    "store_managers",
    Base.metadata,
    Column(
        "store_id",
        PG_UUID(as_uuid=True),
        ForeignKey("stores.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "client_id",
        PG_UUID(as_uuid=True),
        ForeignKey("clients.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

store_couriers = Table(
    "store_couriers",
    Base.metadata,
    Column(
        "store_id",
        PG_UUID(as_uuid=True),
        ForeignKey("stores.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "client_id",
        PG_UUID(as_uuid=True),
        ForeignKey("clients.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Client(Base):
    """
    ORM model for clients table.

    Platform identity: owns stores, and manages or delivers for others.
    """

    __tablename__ = "clients"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    phone_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ClientRole.USER.value)

    # Subscription
    subscription_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SubscriptionType.BASIC.value
    )
    subscription_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    subscription_start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    subscription_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Payment card
    payment_card_number: Mapped[str | None] = mapped_column(String(19), nullable=True)
    payment_card_holder: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_card_expiry_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    payment_card_expiry_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    payment_card_cvv: Mapped[str | None] = mapped_column(String(4), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    stores: Mapped[list["Store"]] = relationship(
        "Store", back_populates="owner", lazy="raise", foreign_keys="Store.owner_id"
    )
    managing_stores: Mapped[list["Store"]] = relationship(
        "Store", secondary=store_managers, back_populates="managers", lazy="raise"
    )
    delivering_stores: Mapped[list["Store"]] = relationship(
        "Store", secondary=store_couriers, back_populates="couriers", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Client(id={self.id}, email={self.email})>"


class Store(Base):
    """
    ORM model for stores table.

    The owner is fixed at creation; managers and couriers are mutable sets.
    """

    __tablename__ = "stores"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    contact_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    contact_city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    owner_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    app_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("apps.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
        unique=True,
    )

    # Bank payout details
    bank_account_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    bank_account_holder: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bank_iban: Mapped[str | None] = mapped_column(String(34), nullable=True)
    bank_swift_code: Mapped[str | None] = mapped_column(String(11), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    owner: Mapped[Client] = relationship(
        "Client", back_populates="stores", lazy="raise", foreign_keys=[owner_id]
    )
    managers: Mapped[list[Client]] = relationship(
        "Client", secondary=store_managers, back_populates="managing_stores", lazy="raise"
    )
    couriers: Mapped[list[Client]] = relationship(
        "Client", secondary=store_couriers, back_populates="delivering_stores", lazy="raise"
    )
    app: Mapped["App | None"] = relationship(
        "App", lazy="raise", foreign_keys=[app_id], post_update=True
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Store(id={self.id}, name={self.name}, owner_id={self.owner_id})>"


class App(Base):
    """ORM model for apps table - the mobile storefront generated for a store."""

    __tablename__ = "apps"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    version: Mapped[str] = mapped_column(String(20), nullable=False, default="1.0.0")
    icon_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    splash_screen_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    primary_color: Mapped[str] = mapped_column(String(32), nullable=False)
    secondary_color: Mapped[str] = mapped_column(String(32), nullable=False)
    target_platforms: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    default_language: Mapped[str] = mapped_column(String(10), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    keywords: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    screenshots: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    app_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    store_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<App(id={self.id}, slug={self.slug}, store_id={self.store_id})>"


class Product(Base):
    """
    ORM model for products table.

    amount is derived: it always equals the sum of size_inventory quantities.
    """

    __tablename__ = "products"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    store_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_pre_order: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_discount: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    discount_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    img_urls: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    order_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    size_inventory: Mapped[list["ProductSize"]] = relationship(
        "ProductSize",
        back_populates="product",
        cascade="all, delete-orphan",
        lazy="raise",
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_product_amount_non_negative"),
        CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="ck_product_discount_percent_range",
        ),
        Index("idx_products_store_id", "store_id"),
        Index("idx_products_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Product(id={self.id}, name={self.name}, amount={self.amount})>"


class ProductSize(Base):
    """ORM model for product_sizes table - one (size, quantity) row per product."""

    __tablename__ = "product_sizes"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    product_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    size: Mapped[str] = mapped_column(String(5), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    product: Mapped[Product] = relationship(
        "Product", back_populates="size_inventory", lazy="raise"
    )

    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_product_size_quantity"),)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<ProductSize(product_id={self.product_id}, size={self.size}, qty={self.quantity})>"


class Invite(Base):
    """
    ORM model for invites table.

    Stored flags cover the terminal states (used, revoked). Expiry is never
    stored; it is always computed from expires_at at read time.
    """

    __tablename__ = "invites"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)

    store_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    used_by_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
    )

    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    store: Mapped[Store] = relationship("Store", lazy="raise")
    used_by: Mapped[Client | None] = relationship("Client", lazy="raise")

    __table_args__ = (
        Index("idx_invites_store_id", "store_id"),
        Index("idx_invites_email_store", "email", "store_id"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Invite(id={self.id}, store_id={self.store_id}, role={self.role}, "
            f"is_used={self.is_used}, revoked={self.revoked})>"
        )


class Transaction(Base):
    """
    ORM model for transactions table.

    Bookkeeping ledger of money movements for a store.
    """

    __tablename__ = "transactions"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    store_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TransactionStatus.PENDING.value
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    external_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(100), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="UAH")
    processing_fee: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    net_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    reference_order_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[str | None] = mapped_column("metadata", Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_transactions_store_created", "store_id", "created_at"),
        Index(
            "idx_transactions_external_id",
            "external_id",
            postgresql_where=text("external_id IS NOT NULL"),
        ),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Transaction(id={self.id}, store_id={self.store_id}, type={self.type}, "
            f"status={self.status}, amount={self.amount})>"
        )

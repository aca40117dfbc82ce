"""
API Models - Pydantic models for request/response validation.

All request and response bodies are strongly typed.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ClientRole(str, Enum):
    """Platform-wide client role."""

    ADMIN = "ADMIN"
    USER = "USER"


class SubscriptionType(str, Enum):
    """Subscription plan."""

    BASIC = "BASIC"
    ADVANCED = "ADVANCED"
    PRO = "PRO"
    UNLIMITED = "UNLIMITED"


class Size(str, Enum):
    """Garment size of a product size row."""

    XS = "XS"
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"
    XXL = "XXL"


class StoreRole(str, Enum):
    """Membership level on a store."""

    OWNER = "owner"
    MANAGER = "manager"
    COURIER = "courier"


class TeamRole(str, Enum):
    """Role granted by an invite."""

    MANAGER = "MANAGER"
    COURIER = "COURIER"


class InviteState(str, Enum):
    """Presentation state of an invite. EXPIRED is derived, never stored."""

    PENDING = "PENDING"
    USED = "USED"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"


class TransactionType(str, Enum):
    """Financial transaction type."""

    SALE = "SALE"
    PAYOUT = "PAYOUT"
    REFUND = "REFUND"
    FEE = "FEE"
    CHARGEBACK = "CHARGEBACK"
    ADJUSTMENT = "ADJUSTMENT"


class TransactionStatus(str, Enum):
    """Financial transaction status."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    DISPUTED = "DISPUTED"


# ============================================================================
# Auth / Client Models
# ============================================================================


class RegisterRequest(BaseModel):
    """POST /v1/auth/register request body."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)
    name: str | None = Field(None, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Reject obviously malformed addresses."""
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class LoginRequest(BaseModel):
    """POST /v1/auth/login request body."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)


class UpdateSubscriptionRequest(BaseModel):
    subscription_type: SubscriptionType


class UpdatePaymentCardRequest(BaseModel):
    """PUT /v1/me/payment-card request body."""

    payment_card_number: str = Field(..., min_length=12, max_length=19)
    payment_card_holder: str = Field(..., min_length=1, max_length=255)
    payment_card_expiry_month: int = Field(..., ge=1, le=12)
    payment_card_expiry_year: int = Field(..., ge=2000, le=2100)
    payment_card_cvv: str = Field(..., min_length=3, max_length=4)

    @field_validator("payment_card_number", "payment_card_cvv")
    @classmethod
    def validate_digits(cls, v: str) -> str:
        if not v.isdigit():
            raise ValueError("must contain digits only")
        return v


class ClientSummary(BaseModel):
    """Team member as shown on a store."""

    id: UUID
    email: str
    name: str | None = None


class ClientResponse(BaseModel):
    """Client profile. Card number and CVV are never returned."""

    id: UUID
    email: str
    name: str | None = None
    phone: str | None = None
    email_verified: bool = False
    phone_verified: bool = False
    role: ClientRole
    subscription_active: bool
    subscription_type: SubscriptionType
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime | None = None
    payment_card_holder: str | None = None
    payment_card_last4: str | None = None
    payment_card_expiry_month: int | None = None
    payment_card_expiry_year: int | None = None
    owned_store_ids: list[UUID] | None = None
    managing_store_ids: list[UUID] | None = None
    delivering_store_ids: list[UUID] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthPayload(BaseModel):
    """Token issued on register/login."""

    token: str
    client: ClientResponse


# ============================================================================
# Store / App Models
# ============================================================================


class CreateStoreRequest(BaseModel):
    """POST /v1/stores request body."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    contact_email: str | None = Field(None, max_length=255)
    contact_phone: str | None = Field(None, max_length=50)
    contact_address: str | None = Field(None, max_length=500)
    contact_city: str | None = Field(None, max_length=255)
    website: str | None = Field(None, max_length=500)


class UpdateStoreRequest(BaseModel):
    """PATCH /v1/stores/{store_id} request body. Unset fields are left untouched."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    contact_email: str | None = Field(None, max_length=255)
    contact_phone: str | None = Field(None, max_length=50)
    contact_address: str | None = Field(None, max_length=500)
    contact_city: str | None = Field(None, max_length=255)
    website: str | None = Field(None, max_length=500)


class CreateAppRequest(BaseModel):
    """POST /v1/stores/{store_id}/app request body."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9][a-z0-9-]*$")
    icon_url: str | None = None
    splash_screen_url: str | None = None
    primary_color: str = Field(..., min_length=1, max_length=32)
    secondary_color: str = Field(..., min_length=1, max_length=32)
    target_platforms: list[str]
    default_language: str = Field(..., min_length=2, max_length=10)
    currency: str = Field(..., min_length=3, max_length=3)
    keywords: list[str] = Field(default_factory=list)
    screenshots: list[str] = Field(default_factory=list)


class AppResponse(BaseModel):
    id: UUID
    store_id: UUID | None
    name: str
    description: str | None = None
    slug: str
    version: str
    icon_url: str | None = None
    splash_screen_url: str | None = None
    primary_color: str
    secondary_color: str
    target_platforms: list[str]
    default_language: str
    currency: str
    keywords: list[str]
    screenshots: list[str]
    app_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StoreResponse(BaseModel):
    """Store as seen by a member. Team fields are null when not loaded."""

    id: UUID
    name: str
    description: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    contact_address: str | None = None
    contact_city: str | None = None
    website: str | None = None
    is_active: bool
    owner_id: UUID
    app_id: UUID | None = None
    owner: ClientSummary | None = None
    managers: list[ClientSummary] | None = None
    couriers: list[ClientSummary] | None = None
    app: AppResponse | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UpdateBankAccountRequest(BaseModel):
    """PUT /v1/stores/{store_id}/bank-account request body."""

    bank_account_number: str | None = Field(None, max_length=64)
    bank_account_holder: str | None = Field(None, max_length=255)
    bank_name: str | None = Field(None, max_length=255)
    bank_iban: str | None = Field(None, max_length=34)
    bank_swift_code: str | None = Field(None, max_length=11)


class BankAccountResponse(BaseModel):
    store_id: UUID
    bank_account_number: str | None = None
    bank_account_holder: str | None = None
    bank_name: str | None = None
    bank_iban: str | None = None
    bank_swift_code: str | None = None


# ============================================================================
# Product Models
# ============================================================================


class ProductSizeInput(BaseModel):
    """One (size, quantity) pair of a size inventory."""

    size: Size
    quantity: int = Field(..., ge=0)


class CreateProductRequest(BaseModel):
    """POST /v1/stores/{store_id}/products request body."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    category: str | None = Field(None, max_length=100)
    is_pre_order: bool = False
    is_discount: bool = False
    discount_percent: int = Field(0, ge=0, le=100)
    img_urls: list[str] = Field(default_factory=list)
    size_inventory: list[ProductSizeInput]


class UpdateProductRequest(BaseModel):
    """
    PATCH /v1/products/{product_id} request body.

    Only fields present in the request are changed. A present size_inventory,
    even an empty one, replaces the whole size set.
    """

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    category: str | None = Field(None, max_length=100)
    is_pre_order: bool | None = None
    is_discount: bool | None = None
    discount_percent: int | None = Field(None, ge=0, le=100)
    img_urls: list[str] | None = None
    size_inventory: list[ProductSizeInput] | None = None


class UpdateProductStockRequest(BaseModel):
    """PUT /v1/products/{product_id}/stock request body."""

    size_inventory: list[ProductSizeInput]


class ProductSizeResponse(BaseModel):
    id: UUID | None = None
    size: Size
    quantity: int


class ProductResponse(BaseModel):
    id: UUID
    store_id: UUID
    name: str
    description: str | None = None
    price: Decimal
    category: str | None = None
    amount: int
    size_inventory: list[ProductSizeResponse] | None = None
    is_pre_order: bool
    is_discount: bool
    discount_percent: int
    img_urls: list[str]
    order_count: int
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ============================================================================
# Invite Models
# ============================================================================


class CreateInviteRequest(BaseModel):
    """POST /v1/stores/{store_id}/invites request body."""

    role: TeamRole
    email: str | None = Field(None, min_length=3, max_length=255)


class InviteResponse(BaseModel):
    id: UUID
    token: str
    email: str | None = None
    role: TeamRole
    store_id: UUID
    store_name: str | None = None
    state: InviteState
    created_at: datetime
    expires_at: datetime
    is_used: bool
    used_at: datetime | None = None
    used_by_id: UUID | None = None
    revoked: bool
    revoked_at: datetime | None = None


# ============================================================================
# Transaction Models
# ============================================================================


class CreateTransactionRequest(BaseModel):
    """POST /v1/stores/{store_id}/transactions request body."""

    amount: Decimal = Field(..., max_digits=12, decimal_places=2)
    type: TransactionType
    description: str | None = None
    external_id: str | None = Field(None, max_length=255)
    payment_method: str | None = Field(None, max_length=100)
    currency: str = Field("UAH", min_length=3, max_length=3)
    processing_fee: Decimal | None = Field(None, max_digits=12, decimal_places=2)
    reference_order_id: str | None = Field(None, max_length=255)
    metadata: str | None = None


class UpdateTransactionStatusRequest(BaseModel):
    status: TransactionStatus


class TransactionResponse(BaseModel):
    id: UUID
    store_id: UUID
    amount: Decimal
    type: TransactionType
    status: TransactionStatus
    description: str | None = None
    external_id: str | None = None
    payment_method: str | None = None
    currency: str
    processing_fee: Decimal | None = None
    net_amount: Decimal | None = None
    reference_order_id: str | None = None
    metadata: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    processed_at: datetime | None = None


# ============================================================================
# Service Models
# ============================================================================


class HealthResponse(BaseModel):
    status: str
    database: str
    timestamp: str


class ErrorResponse(BaseModel):
    detail: str
    error: str

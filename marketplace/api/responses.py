"""
Response builders - ORM entities to API models.

Relationships that were not loaded are rendered as null rather than fetched.
"""

from datetime import datetime

from marketplace.db.models import App, Client, Invite, Product, Store, Transaction, loaded
from marketplace.models.api import (
    AppResponse,
    BankAccountResponse,
    ClientResponse,
    ClientSummary,
    InviteResponse,
    ProductResponse,
    ProductSizeResponse,
    StoreResponse,
    TransactionResponse,
)
from marketplace.services.invites import invite_state


def _ids(entities: list | None) -> list | None:
    if entities is None:
        return None
    return [entity.id for entity in entities]


def _summaries(clients: list | None) -> list[ClientSummary] | None:
    if clients is None:
        return None
    return [client_summary(client) for client in clients]


def client_summary(client: Client) -> ClientSummary:
    return ClientSummary(id=client.id, email=client.email, name=client.name)


def client_response(client: Client) -> ClientResponse:
    """Client profile. Only the last four card digits leave the service."""
    card_number = client.payment_card_number
    return ClientResponse(
        id=client.id,
        email=client.email,
        name=client.name,
        phone=client.phone,
        email_verified=client.email_verified,
        phone_verified=client.phone_verified,
        role=client.role,
        subscription_active=client.subscription_active,
        subscription_type=client.subscription_type,
        subscription_start_date=client.subscription_start_date,
        subscription_end_date=client.subscription_end_date,
        payment_card_holder=client.payment_card_holder,
        payment_card_last4=card_number[-4:] if card_number else None,
        payment_card_expiry_month=client.payment_card_expiry_month,
        payment_card_expiry_year=client.payment_card_expiry_year,
        owned_store_ids=_ids(loaded(client, "stores")),
        managing_store_ids=_ids(loaded(client, "managing_stores")),
        delivering_store_ids=_ids(loaded(client, "delivering_stores")),
        created_at=client.created_at,
        updated_at=client.updated_at,
    )


def app_response(app: App) -> AppResponse:
    return AppResponse(
        id=app.id,
        store_id=app.store_id,
        name=app.name,
        description=app.description,
        slug=app.slug,
        version=app.version,
        icon_url=app.icon_url,
        splash_screen_url=app.splash_screen_url,
        primary_color=app.primary_color,
        secondary_color=app.secondary_color,
        target_platforms=list(app.target_platforms or []),
        default_language=app.default_language,
        currency=app.currency,
        keywords=list(app.keywords or []),
        screenshots=list(app.screenshots or []),
        app_url=app.app_url,
        created_at=app.created_at,
        updated_at=app.updated_at,
    )


def store_response(store: Store) -> StoreResponse:
    owner = loaded(store, "owner")
    app = loaded(store, "app")
    return StoreResponse(
        id=store.id,
        name=store.name,
        description=store.description,
        contact_email=store.contact_email,
        contact_phone=store.contact_phone,
        contact_address=store.contact_address,
        contact_city=store.contact_city,
        website=store.website,
        is_active=store.is_active,
        owner_id=store.owner_id,
        app_id=store.app_id,
        owner=client_summary(owner) if owner is not None else None,
        managers=_summaries(loaded(store, "managers")),
        couriers=_summaries(loaded(store, "couriers")),
        app=app_response(app) if app is not None else None,
        created_at=store.created_at,
        updated_at=store.updated_at,
    )


def bank_account_response(store: Store) -> BankAccountResponse:
    return BankAccountResponse(
        store_id=store.id,
        bank_account_number=store.bank_account_number,
        bank_account_holder=store.bank_account_holder,
        bank_name=store.bank_name,
        bank_iban=store.bank_iban,
        bank_swift_code=store.bank_swift_code,
    )


def product_response(product: Product) -> ProductResponse:
    sizes = loaded(product, "size_inventory")
    return ProductResponse(
        id=product.id,
        store_id=product.store_id,
        name=product.name,
        description=product.description,
        price=product.price,
        category=product.category,
        amount=product.amount,
        size_inventory=(
            None
            if sizes is None
            else [
                ProductSizeResponse(id=getattr(row, "id", None), size=row.size, quantity=row.quantity)
                for row in sizes
            ]
        ),
        is_pre_order=product.is_pre_order,
        is_discount=product.is_discount,
        discount_percent=product.discount_percent,
        img_urls=list(product.img_urls or []),
        order_count=product.order_count,
        is_active=product.is_active,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def invite_response(invite: Invite, now: datetime) -> InviteResponse:
    store = loaded(invite, "store")
    return InviteResponse(
        id=invite.id,
        token=invite.token,
        email=invite.email,
        role=invite.role,
        store_id=invite.store_id,
        store_name=store.name if store is not None else None,
        state=invite_state(invite, now),
        created_at=invite.created_at,
        expires_at=invite.expires_at,
        is_used=invite.is_used,
        used_at=invite.used_at,
        used_by_id=invite.used_by_id,
        revoked=invite.revoked,
        revoked_at=invite.revoked_at,
    )


def transaction_response(transaction: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=transaction.id,
        store_id=transaction.store_id,
        amount=transaction.amount,
        type=transaction.type,
        status=transaction.status,
        description=transaction.description,
        external_id=transaction.external_id,
        payment_method=transaction.payment_method,
        currency=transaction.currency,
        processing_fee=transaction.processing_fee,
        net_amount=transaction.net_amount,
        reference_order_id=transaction.reference_order_id,
        metadata=transaction.metadata_,
        created_at=transaction.created_at,
        updated_at=transaction.updated_at,
        processed_at=transaction.processed_at,
    )

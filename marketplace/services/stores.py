"""
Store Service - Stores, their storefront app and bank payout details.
"""

from uuid import UUID

from sqlalchemy import or_
from structlog import get_logger

from marketplace.db.models import App, Client, Store
from marketplace.db.repository import MarketplaceRepository
from marketplace.exceptions import ConflictError, UnauthenticatedError
from marketplace.models.api import (
    CreateAppRequest,
    CreateStoreRequest,
    UpdateBankAccountRequest,
    UpdateStoreRequest,
)
from marketplace.models.domain import Actor
from marketplace.services.access_control import (
    ALL_ROLES,
    OWNER_ONLY,
    STAFF_ROLES,
    require_store_access,
)

logger = get_logger(__name__)

# Relations returned with every store view
STORE_VIEW = ("owner", "managers", "couriers", "app")


class StoreService:
    """Service for store management."""

    def __init__(self, repo: MarketplaceRepository) -> None:
        """Initialize with repository."""
        self.repo = repo

    async def my_stores(self, actor: Actor | None) -> list[Store]:
        """Stores the actor owns, manages or delivers for. Each appears once."""
        if actor is None:
            raise UnauthenticatedError()

        return await self.repo.stores.find_many(
            or_(
                Store.owner_id == actor.id,
                Store.managers.any(Client.id == actor.id),
                Store.couriers.any(Client.id == actor.id),
            ),
            load=STORE_VIEW,
            order_by=(Store.created_at.desc(),),
        )

    async def get_store(self, store_id: UUID, actor: Actor | None) -> Store:
        return await require_store_access(self.repo, store_id, actor, ALL_ROLES, load=STORE_VIEW)

    async def create_store(self, request: CreateStoreRequest, actor: Actor | None) -> Store:
        """Create a store owned by the actor."""
        if actor is None:
            raise UnauthenticatedError()

        async with self.repo.transaction():
            store = await self.repo.stores.create(
                owner_id=actor.id,
                managers=[],
                couriers=[],
                **request.model_dump(),
            )

        logger.info("store_created", store_id=str(store.id), owner_id=str(actor.id))
        return store

    async def update_store(
        self, store_id: UUID, request: UpdateStoreRequest, actor: Actor | None
    ) -> Store:
        """Owner-only partial update. The owner itself can never change."""
        store = await require_store_access(self.repo, store_id, actor, OWNER_ONLY, load=STORE_VIEW)

        patch = request.model_dump(exclude_unset=True)
        if patch.get("name", "") is None:
            del patch["name"]

        async with self.repo.transaction():
            await self.repo.stores.update(store, **patch)

        logger.info("store_updated", store_id=str(store_id), fields=sorted(patch))
        return store

    async def create_app(
        self, store_id: UUID, request: CreateAppRequest, actor: Actor | None
    ) -> App:
        """
        Create the storefront app of a store.

        Raises:
            AccessDeniedError: Actor is not the owner
            ConflictError: Store already has an app, or the slug is taken
        """
        store = await require_store_access(self.repo, store_id, actor, OWNER_ONLY)

        if store.app_id is not None:
            raise ConflictError("Store already has an app")

        existing = await self.repo.apps.find_one(App.slug == request.slug)
        if existing is not None:
            raise ConflictError("App with this slug already exists")

        async with self.repo.transaction():
            app = await self.repo.apps.create(store_id=store_id, **request.model_dump())
            await self.repo.stores.update(store, app_id=app.id)

        logger.info("app_created", app_id=str(app.id), store_id=str(store_id), slug=request.slug)
        return app

    async def get_bank_account(self, store_id: UUID, actor: Actor | None) -> Store:
        return await require_store_access(self.repo, store_id, actor, STAFF_ROLES)

    async def update_bank_account(
        self, store_id: UUID, request: UpdateBankAccountRequest, actor: Actor | None
    ) -> Store:
        """Owner-only update of payout details."""
        store = await require_store_access(self.repo, store_id, actor, OWNER_ONLY)

        patch = request.model_dump(exclude_unset=True)
        async with self.repo.transaction():
            await self.repo.stores.update(store, **patch)

        logger.info("bank_account_updated", store_id=str(store_id), fields=sorted(patch))
        return store

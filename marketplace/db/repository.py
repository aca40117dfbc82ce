"""
Repository - Typed data access over an async SQLAlchemy session.

Services talk to the database only through MarketplaceRepository. Related
entities are loaded only when requested with a dotted path such as
"managers" or "store.couriers".
"""

from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from structlog import get_logger

from marketplace.db.models import (
    App,
    Base,
    Client,
    Invite,
    Product,
    Store,
    Transaction,
)

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def _load_option(model: type[Base], path: str) -> Any:
    """Build a chained selectinload option from a dotted relationship path."""
    option: Any = None
    current: Any = model
    for name in path.split("."):
        attribute = getattr(current, name)
        option = selectinload(attribute) if option is None else option.selectinload(attribute)
        current = attribute.property.mapper.class_
    return option


class Repository(Generic[ModelT]):
    """CRUD operations for one entity type."""

    def __init__(self, session: AsyncSession, model: type[ModelT]) -> None:
        self.session = session
        self.model = model

    def _select(self, load: Iterable[str], for_update: bool) -> Any:
        stmt = select(self.model)
        for path in load:
            stmt = stmt.options(_load_option(self.model, path))
        if for_update:
            # Row lock plus a refresh of any identity-mapped copy
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return stmt

    async def find_by_id(
        self,
        entity_id: UUID,
        load: Iterable[str] = (),
        for_update: bool = False,
    ) -> ModelT | None:
        """Fetch one entity by primary key, or None."""
        stmt = self._select(load, for_update).where(self.model.id == entity_id)  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_one(
        self,
        *criteria: Any,
        load: Iterable[str] = (),
        for_update: bool = False,
    ) -> ModelT | None:
        """Fetch the single entity matching criteria, or None."""
        stmt = self._select(load, for_update).where(*criteria)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_many(
        self,
        *criteria: Any,
        load: Iterable[str] = (),
        order_by: Sequence[Any] = (),
    ) -> list[ModelT]:
        """Fetch all entities matching criteria."""
        stmt = self._select(load, False).where(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **data: Any) -> ModelT:
        """Insert a new entity and flush so defaults and ids are populated."""
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def update(self, entity: ModelT, **patch: Any) -> ModelT:
        """Apply a field patch to an entity and flush."""
        for key, value in patch.items():
            setattr(entity, key, value)
        await self.session.flush()
        return entity

    async def delete(self, entity: ModelT) -> None:
        await self.session.delete(entity)
        await self.session.flush()


class MarketplaceRepository:
    """Unit of work bundling one repository per entity over a shared session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.clients: Repository[Client] = Repository(session, Client)
        self.stores: Repository[Store] = Repository(session, Store)
        self.products: Repository[Product] = Repository(session, Product)
        self.apps: Repository[App] = Repository(session, App)
        self.invites: Repository[Invite] = Repository(session, Invite)
        self.transactions: Repository[Transaction] = Repository(session, Transaction)

    async def flush(self) -> None:
        await self.session.flush()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """
        Commit on success, roll back on any exception and re-raise.

        Usage:
            async with repo.transaction():
                await repo.stores.update(store, name="New")
        """
        try:
            yield
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.warning("transaction_rolled_back")
            raise

"""
Product Service - Per-size stock bookkeeping.

A product's amount is always the sum of its size quantities. Size sets are
never merged: every size change deletes the existing rows and recreates
them from the request.
"""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from structlog import get_logger

from marketplace.db.models import Product, ProductSize
from marketplace.db.repository import MarketplaceRepository
from marketplace.exceptions import NotFoundError, UnauthenticatedError
from marketplace.models.api import (
    CreateProductRequest,
    ProductSizeInput,
    UpdateProductRequest,
)
from marketplace.models.domain import Actor
from marketplace.observability.metrics import metrics
from marketplace.services.access_control import STAFF_ROLES, require_store_access

logger = get_logger(__name__)

# Columns that accept an explicit null on update
NULLABLE_FIELDS = frozenset({"description", "category"})


def total_quantity(sizes: Iterable[Any]) -> int:
    """Sum of quantities over size rows or size inputs."""
    return sum(size.quantity for size in sizes)


def _size_rows(sizes: Iterable[ProductSizeInput]) -> list[ProductSize]:
    return [ProductSize(size=item.size.value, quantity=item.quantity) for item in sizes]


class ProductService:
    """Service for store products and their size inventory."""

    def __init__(self, repo: MarketplaceRepository) -> None:
        """Initialize with repository."""
        self.repo = repo

    async def _load_for_staff(self, product_id: UUID, actor: Actor | None) -> Product:
        if actor is None:
            raise UnauthenticatedError()

        product = await self.repo.products.find_by_id(product_id, load=("size_inventory",))
        if product is None:
            raise NotFoundError("Product", product_id)

        await require_store_access(self.repo, product.store_id, actor, STAFF_ROLES)
        return product

    async def _replace_sizes(self, product: Product, sizes: list[ProductSizeInput]) -> None:
        """Delete every size row, recreate from input, recompute amount."""
        product.size_inventory.clear()
        await self.repo.flush()
        product.size_inventory.extend(_size_rows(sizes))
        product.amount = total_quantity(sizes)

    async def create(
        self,
        store_id: UUID,
        request: CreateProductRequest,
        actor: Actor | None,
    ) -> Product:
        """
        Create a product together with its size rows.

        Raises:
            UnauthenticatedError: No actor
            NotFoundError: Store doesn't exist
            AccessDeniedError: Actor is not owner or manager
        """
        await require_store_access(self.repo, store_id, actor, STAFF_ROLES)

        async with self.repo.transaction():
            product = await self.repo.products.create(
                store_id=store_id,
                name=request.name,
                description=request.description,
                price=request.price,
                category=request.category,
                amount=total_quantity(request.size_inventory),
                is_pre_order=request.is_pre_order,
                is_discount=request.is_discount,
                discount_percent=request.discount_percent,
                img_urls=list(request.img_urls),
                order_count=0,
                size_inventory=_size_rows(request.size_inventory),
            )

        logger.info(
            "product_created",
            product_id=str(product.id),
            store_id=str(store_id),
            amount=product.amount,
            sizes=len(request.size_inventory),
        )
        return product

    async def update(
        self,
        product_id: UUID,
        request: UpdateProductRequest,
        actor: Actor | None,
    ) -> Product:
        """
        Patch a product.

        Fields missing from the request are left untouched. A size_inventory
        in the request replaces the whole size set; without one, amount is
        not recomputed.
        """
        product = await self._load_for_staff(product_id, actor)

        patch = {
            key: value
            for key, value in request.model_dump(
                exclude_unset=True, exclude={"size_inventory"}
            ).items()
            if value is not None or key in NULLABLE_FIELDS
        }
        sizes = request.size_inventory

        async with self.repo.transaction():
            if patch:
                await self.repo.products.update(product, **patch)
            if sizes is not None:
                await self._replace_sizes(product, sizes)
                await self.repo.flush()

        if sizes is not None:
            metrics.record_stock_replacement("update")
        logger.info(
            "product_updated",
            product_id=str(product_id),
            fields=sorted(patch),
            sizes_replaced=sizes is not None,
            amount=product.amount,
        )
        return product

    async def delete(self, product_id: UUID, actor: Actor | None) -> Product:
        """Delete size rows then the product, atomically."""
        product = await self._load_for_staff(product_id, actor)

        async with self.repo.transaction():
            product.size_inventory.clear()
            await self.repo.flush()
            await self.repo.products.delete(product)

        logger.info("product_deleted", product_id=str(product_id), store_id=str(product.store_id))
        return product

    async def set_stock(
        self,
        product_id: UUID,
        sizes: list[ProductSizeInput],
        actor: Actor | None,
    ) -> Product:
        """Unconditionally replace the size set and recompute amount."""
        product = await self._load_for_staff(product_id, actor)

        async with self.repo.transaction():
            await self._replace_sizes(product, sizes)
            await self.repo.flush()

        metrics.record_stock_replacement("set_stock")
        logger.info(
            "product_stock_updated",
            product_id=str(product_id),
            amount=product.amount,
            sizes=len(sizes),
        )
        return product

    async def list_for_store(self, store_id: UUID, actor: Actor | None) -> list[Product]:
        """Products of a store, newest first."""
        await require_store_access(self.repo, store_id, actor, STAFF_ROLES)
        return await self.repo.products.find_many(
            Product.store_id == store_id,
            load=("size_inventory",),
            order_by=(Product.created_at.desc(),),
        )

    async def get(self, product_id: UUID, actor: Actor | None) -> Product:
        return await self._load_for_staff(product_id, actor)

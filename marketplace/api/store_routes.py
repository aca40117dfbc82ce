"""
Store Routes - Stores, storefront apps and products.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from marketplace.api.dependencies import get_actor, get_product_service, get_store_service
from marketplace.api.responses import app_response, product_response, store_response
from marketplace.models.api import (
    AppResponse,
    CreateAppRequest,
    CreateProductRequest,
    CreateStoreRequest,
    ProductResponse,
    StoreResponse,
    UpdateProductRequest,
    UpdateProductStockRequest,
    UpdateStoreRequest,
)
from marketplace.models.domain import Actor
from marketplace.services.products import ProductService
from marketplace.services.stores import StoreService

router = APIRouter()


# ============================================================================
# Stores
# ============================================================================


@router.get("/v1/stores", response_model=list[StoreResponse], operation_id="myStores")
async def my_stores(
    actor: Actor | None = Depends(get_actor),
    service: StoreService = Depends(get_store_service),
) -> list[StoreResponse]:
    """Stores the caller owns, manages or delivers for."""
    return [store_response(store) for store in await service.my_stores(actor)]


@router.post(
    "/v1/stores",
    response_model=StoreResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createStore",
)
async def create_store(
    request: CreateStoreRequest,
    actor: Actor | None = Depends(get_actor),
    service: StoreService = Depends(get_store_service),
) -> StoreResponse:
    return store_response(await service.create_store(request, actor))


@router.get("/v1/stores/{store_id}", response_model=StoreResponse, operation_id="store")
async def get_store(
    store_id: UUID,
    actor: Actor | None = Depends(get_actor),
    service: StoreService = Depends(get_store_service),
) -> StoreResponse:
    return store_response(await service.get_store(store_id, actor))


@router.patch("/v1/stores/{store_id}", response_model=StoreResponse, operation_id="updateStore")
async def update_store(
    store_id: UUID,
    request: UpdateStoreRequest,
    actor: Actor | None = Depends(get_actor),
    service: StoreService = Depends(get_store_service),
) -> StoreResponse:
    """Owner-only partial update."""
    return store_response(await service.update_store(store_id, request, actor))


@router.post(
    "/v1/stores/{store_id}/app",
    response_model=AppResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createApp",
)
async def create_app(
    store_id: UUID,
    request: CreateAppRequest,
    actor: Actor | None = Depends(get_actor),
    service: StoreService = Depends(get_store_service),
) -> AppResponse:
    """Create the storefront app. A store has at most one."""
    return app_response(await service.create_app(store_id, request, actor))


# ============================================================================
# Products
# ============================================================================


@router.get(
    "/v1/stores/{store_id}/products",
    response_model=list[ProductResponse],
    operation_id="storeProducts",
)
async def store_products(
    store_id: UUID,
    actor: Actor | None = Depends(get_actor),
    service: ProductService = Depends(get_product_service),
) -> list[ProductResponse]:
    return [product_response(product) for product in await service.list_for_store(store_id, actor)]


@router.post(
    "/v1/stores/{store_id}/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createProduct",
)
async def create_product(
    store_id: UUID,
    request: CreateProductRequest,
    actor: Actor | None = Depends(get_actor),
    service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    """Create a product; amount is the sum of the size quantities."""
    return product_response(await service.create(store_id, request, actor))


@router.get("/v1/products/{product_id}", response_model=ProductResponse, operation_id="product")
async def get_product(
    product_id: UUID,
    actor: Actor | None = Depends(get_actor),
    service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    return product_response(await service.get(product_id, actor))


@router.patch(
    "/v1/products/{product_id}", response_model=ProductResponse, operation_id="updateProduct"
)
async def update_product(
    product_id: UUID,
    request: UpdateProductRequest,
    actor: Actor | None = Depends(get_actor),
    service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    """
    Partial product update.

    Sending size_inventory replaces every size row and recomputes amount.
    """
    return product_response(await service.update(product_id, request, actor))


@router.delete(
    "/v1/products/{product_id}", response_model=ProductResponse, operation_id="deleteProduct"
)
async def delete_product(
    product_id: UUID,
    actor: Actor | None = Depends(get_actor),
    service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    return product_response(await service.delete(product_id, actor))


@router.put(
    "/v1/products/{product_id}/stock",
    response_model=ProductResponse,
    operation_id="updateProductStock",
)
async def update_product_stock(
    product_id: UUID,
    request: UpdateProductStockRequest,
    actor: Actor | None = Depends(get_actor),
    service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    return product_response(await service.set_stock(product_id, request.size_inventory, actor))

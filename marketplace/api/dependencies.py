"""
FastAPI Dependencies - Repository wiring and bearer authentication.

Authentication never fails here: a missing or invalid token resolves to an
anonymous request, and the services decide whether an actor is required.
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import settings
from marketplace.db.repository import MarketplaceRepository
from marketplace.db.session import get_write_db
from marketplace.models.domain import Actor
from marketplace.services.clients import ClientService
from marketplace.services.credentials import CredentialService
from marketplace.services.invites import InviteService
from marketplace.services.products import ProductService
from marketplace.services.stores import StoreService
from marketplace.services.transactions import TransactionService

# Bearer token scheme; absent header is not an error
bearer_scheme = HTTPBearer(auto_error=False)


async def get_repository(db: AsyncSession = Depends(get_write_db)) -> MarketplaceRepository:
    """Repository over the primary database."""
    return MarketplaceRepository(db)


def get_credential_service(
    repo: MarketplaceRepository = Depends(get_repository),
) -> CredentialService:
    return CredentialService(repo, settings.jwt_secret, settings.jwt_expire_hours)


async def get_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    repo: MarketplaceRepository = Depends(get_repository),
) -> Actor | None:
    """
    Resolve the acting client from Authorization: Bearer {jwt}.

    Looked up on the primary, in the same session as the request's writes.

    Usage:
        @router.get("/v1/me")
        async def me(actor: Actor | None = Depends(get_actor)):
            ...
    """
    if credentials is None:
        return None
    service = CredentialService(repo, settings.jwt_secret, settings.jwt_expire_hours)
    return await service.resolve_actor(credentials.credentials)


def get_client_service(repo: MarketplaceRepository = Depends(get_repository)) -> ClientService:
    return ClientService(repo)


def get_store_service(repo: MarketplaceRepository = Depends(get_repository)) -> StoreService:
    return StoreService(repo)


def get_product_service(repo: MarketplaceRepository = Depends(get_repository)) -> ProductService:
    return ProductService(repo)


def get_invite_service(repo: MarketplaceRepository = Depends(get_repository)) -> InviteService:
    return InviteService(repo)


def get_transaction_service(
    repo: MarketplaceRepository = Depends(get_repository),
) -> TransactionService:
    return TransactionService(repo)

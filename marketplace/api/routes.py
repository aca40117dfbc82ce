"""
API Routes - Authentication, client profile and health endpoints.

All requests/responses use Pydantic models.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.dependencies import get_actor, get_client_service, get_credential_service
from marketplace.api.responses import client_response
from marketplace.db.session import get_read_db
from marketplace.models.api import (
    AuthPayload,
    ClientResponse,
    HealthResponse,
    LoginRequest,
    RegisterRequest,
    UpdatePaymentCardRequest,
    UpdateSubscriptionRequest,
)
from marketplace.models.domain import Actor
from marketplace.services.clients import ClientService
from marketplace.services.credentials import CredentialService

router = APIRouter()


@router.post(
    "/v1/auth/register",
    response_model=AuthPayload,
    status_code=status.HTTP_201_CREATED,
    operation_id="register",
)
async def register(
    request: RegisterRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AuthPayload:
    """Create a client account and return a bearer token."""
    token, client = await service.register(request)
    return AuthPayload(token=token, client=client_response(client))


@router.post("/v1/auth/login", response_model=AuthPayload, operation_id="login")
async def login(
    request: LoginRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AuthPayload:
    token, client = await service.login(request)
    return AuthPayload(token=token, client=client_response(client))


@router.get("/v1/me", response_model=ClientResponse, operation_id="me")
async def me(
    actor: Actor | None = Depends(get_actor),
    service: ClientService = Depends(get_client_service),
) -> ClientResponse:
    return client_response(await service.me(actor))


@router.put(
    "/v1/me/subscription", response_model=ClientResponse, operation_id="updateSubscription"
)
async def update_subscription(
    request: UpdateSubscriptionRequest,
    actor: Actor | None = Depends(get_actor),
    service: ClientService = Depends(get_client_service),
) -> ClientResponse:
    """Activate a subscription plan for 30 days from now."""
    client = await service.update_subscription(request.subscription_type, actor)
    return client_response(client)


@router.put(
    "/v1/me/payment-card", response_model=ClientResponse, operation_id="updatePaymentCard"
)
async def update_payment_card(
    request: UpdatePaymentCardRequest,
    actor: Actor | None = Depends(get_actor),
    service: ClientService = Depends(get_client_service),
) -> ClientResponse:
    return client_response(await service.update_payment_card(request, actor))


@router.delete(
    "/v1/me/payment-card", response_model=ClientResponse, operation_id="removePaymentCard"
)
async def remove_payment_card(
    actor: Actor | None = Depends(get_actor),
    service: ClientService = Depends(get_client_service),
) -> ClientResponse:
    return client_response(await service.remove_payment_card(actor))


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_read_db)) -> HealthResponse:
    """
    Health check for load balancer.

    Verifies database connectivity.
    """
    try:
        await db.execute(text("SELECT 1"))

        return HealthResponse(
            status="healthy",
            database="connected",
            timestamp=datetime.now(UTC).isoformat(),
        )

    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(exc),
                "timestamp": datetime.now(UTC).isoformat(),
            },
        ) from exc

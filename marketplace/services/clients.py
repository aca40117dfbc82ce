"""
Client Service - Profile, subscription and payment card of the acting client.
"""

from datetime import UTC, datetime, timedelta

from structlog import get_logger

from marketplace.db.models import Client
from marketplace.db.repository import MarketplaceRepository
from marketplace.exceptions import NotFoundError, UnauthenticatedError
from marketplace.models.api import SubscriptionType, UpdatePaymentCardRequest
from marketplace.models.domain import Actor

logger = get_logger(__name__)

SUBSCRIPTION_PERIOD = timedelta(days=30)
PROFILE_RELATIONS = ("stores", "managing_stores", "delivering_stores")

_CARD_FIELDS = (
    "payment_card_number",
    "payment_card_holder",
    "payment_card_expiry_month",
    "payment_card_expiry_year",
    "payment_card_cvv",
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ClientService:
    """Service for the acting client's own profile."""

    def __init__(self, repo: MarketplaceRepository) -> None:
        """Initialize with repository."""
        self.repo = repo

    async def me(self, actor: Actor | None) -> Client:
        if actor is None:
            raise UnauthenticatedError()

        client = await self.repo.clients.find_by_id(actor.id, load=PROFILE_RELATIONS)
        if client is None:
            raise NotFoundError("Client", actor.id)
        return client

    async def update_subscription(
        self, subscription_type: SubscriptionType, actor: Actor | None
    ) -> Client:
        """Activate a plan for one billing period starting now."""
        client = await self.me(actor)
        now = _utc_now()

        async with self.repo.transaction():
            await self.repo.clients.update(
                client,
                subscription_type=subscription_type.value,
                subscription_active=True,
                subscription_start_date=now,
                subscription_end_date=now + SUBSCRIPTION_PERIOD,
            )

        logger.info(
            "subscription_updated",
            client_id=str(client.id),
            subscription_type=subscription_type.value,
        )
        return client

    async def update_payment_card(
        self, request: UpdatePaymentCardRequest, actor: Actor | None
    ) -> Client:
        client = await self.me(actor)

        async with self.repo.transaction():
            await self.repo.clients.update(client, **request.model_dump(include=set(_CARD_FIELDS)))

        logger.info("payment_card_updated", client_id=str(client.id))
        return client

    async def remove_payment_card(self, actor: Actor | None) -> Client:
        client = await self.me(actor)

        async with self.repo.transaction():
            await self.repo.clients.update(client, **dict.fromkeys(_CARD_FIELDS))

        logger.info("payment_card_removed", client_id=str(client.id))
        return client

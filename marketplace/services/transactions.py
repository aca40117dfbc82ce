"""
Transaction Service - Store financial bookkeeping.

Records money movements for a store and tracks their status. Any status
may be written by staff; completion and failure stamp processed_at.
"""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from structlog import get_logger

from marketplace.db.models import Transaction
from marketplace.db.repository import MarketplaceRepository
from marketplace.exceptions import NotFoundError, UnauthenticatedError
from marketplace.models.api import CreateTransactionRequest, TransactionStatus
from marketplace.models.domain import Actor
from marketplace.observability.metrics import metrics
from marketplace.services.access_control import STAFF_ROLES, require_store_access

logger = get_logger(__name__)

# Statuses that mark a transaction as processed
PROCESSED_STATUSES = frozenset({TransactionStatus.COMPLETED, TransactionStatus.FAILED})


def _utc_now() -> datetime:
    return datetime.now(UTC)


def compute_net_amount(amount: Decimal, processing_fee: Decimal | None) -> Decimal:
    """Net amount after fee. A zero fee is a real fee, only None means no fee."""
    if processing_fee is None:
        return amount
    return amount - processing_fee


class TransactionService:
    """Service for store transactions."""

    def __init__(self, repo: MarketplaceRepository) -> None:
        """Initialize with repository."""
        self.repo = repo

    async def create(
        self,
        store_id: UUID,
        request: CreateTransactionRequest,
        actor: Actor | None,
    ) -> Transaction:
        """
        Record a new PENDING transaction.

        Raises:
            UnauthenticatedError: No actor
            NotFoundError: Store doesn't exist
            AccessDeniedError: Actor is not owner or manager
        """
        await require_store_access(self.repo, store_id, actor, STAFF_ROLES)

        net_amount = compute_net_amount(request.amount, request.processing_fee)

        async with self.repo.transaction():
            transaction = await self.repo.transactions.create(
                store_id=store_id,
                amount=request.amount,
                type=request.type.value,
                status=TransactionStatus.PENDING.value,
                description=request.description,
                external_id=request.external_id,
                payment_method=request.payment_method,
                currency=request.currency,
                processing_fee=request.processing_fee,
                net_amount=net_amount,
                reference_order_id=request.reference_order_id,
                metadata_=request.metadata,
            )

        metrics.record_transaction_created(request.type.value)
        logger.info(
            "transaction_created",
            transaction_id=str(transaction.id),
            store_id=str(store_id),
            type=request.type.value,
            amount=str(request.amount),
            net_amount=str(net_amount),
            currency=request.currency,
        )
        return transaction

    async def update_status(
        self,
        transaction_id: UUID,
        status: TransactionStatus,
        actor: Actor | None,
    ) -> Transaction:
        """
        Write a new status.

        Raises:
            NotFoundError: Transaction doesn't exist
            AccessDeniedError: Actor is not owner or manager of its store
        """
        if actor is None:
            raise UnauthenticatedError()

        transaction = await self.repo.transactions.find_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)

        await require_store_access(self.repo, transaction.store_id, actor, STAFF_ROLES)

        previous = transaction.status
        patch: dict[str, object] = {"status": status.value}
        if status in PROCESSED_STATUSES:
            patch["processed_at"] = _utc_now()

        async with self.repo.transaction():
            await self.repo.transactions.update(transaction, **patch)

        metrics.record_transaction_status(status.value)
        logger.info(
            "transaction_status_updated",
            transaction_id=str(transaction_id),
            store_id=str(transaction.store_id),
            from_status=previous,
            to_status=status.value,
        )
        return transaction

    async def list_for_store(self, store_id: UUID, actor: Actor | None) -> list[Transaction]:
        """Transactions of a store, newest first."""
        await require_store_access(self.repo, store_id, actor, STAFF_ROLES)
        return await self.repo.transactions.find_many(
            Transaction.store_id == store_id,
            order_by=(Transaction.created_at.desc(),),
        )

    async def get(self, transaction_id: UUID, actor: Actor | None) -> Transaction:
        if actor is None:
            raise UnauthenticatedError()

        transaction = await self.repo.transactions.find_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)

        await require_store_access(self.repo, transaction.store_id, actor, STAFF_ROLES)
        return transaction

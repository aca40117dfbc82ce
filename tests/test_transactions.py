"""
Tests for Transaction Service.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from marketplace.exceptions import AccessDeniedError, NotFoundError, UnauthenticatedError
from marketplace.models.api import CreateTransactionRequest, TransactionStatus, TransactionType
from marketplace.services.transactions import TransactionService, compute_net_amount


class TestComputeNetAmount:
    def test_no_fee(self):
        assert compute_net_amount(Decimal("100.00"), None) == Decimal("100.00")

    def test_fee_subtracted(self):
        assert compute_net_amount(Decimal("100.00"), Decimal("2.50")) == Decimal("97.50")

    def test_zero_fee_is_a_fee(self):
        assert compute_net_amount(Decimal("100.00"), Decimal("0")) == Decimal("100.00")


class TestCreateTransaction:
    """Tests for TransactionService.create()."""

    @pytest.mark.asyncio
    async def test_create_pending_with_net_amount(self, repo, store, owner_actor):
        repo.stores.find_by_id.return_value = store
        request = CreateTransactionRequest(
            amount=Decimal("250.00"),
            type=TransactionType.SALE,
            processing_fee=Decimal("7.25"),
            metadata='{"order": 42}',
        )

        transaction = await TransactionService(repo).create(store.id, request, owner_actor)

        assert transaction.status == "PENDING"
        assert transaction.type == "SALE"
        assert transaction.currency == "UAH"
        assert transaction.net_amount == Decimal("242.75")
        assert transaction.metadata_ == '{"order": 42}'
        repo.session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_requires_staff(self, repo, owner, courier, courier_actor, store_factory):
        store = store_factory(owner, couriers=[courier])
        repo.stores.find_by_id.return_value = store
        request = CreateTransactionRequest(amount=Decimal("1"), type=TransactionType.FEE)

        with pytest.raises(AccessDeniedError):
            await TransactionService(repo).create(store.id, request, courier_actor)

        repo.transactions.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_anonymous(self, repo, store):
        request = CreateTransactionRequest(amount=Decimal("1"), type=TransactionType.FEE)

        with pytest.raises(UnauthenticatedError):
            await TransactionService(repo).create(store.id, request, None)


class TestUpdateStatus:
    """Tests for TransactionService.update_status()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [TransactionStatus.COMPLETED, TransactionStatus.FAILED])
    async def test_terminal_status_sets_processed_at(
        self, repo, store, manager_actor, transaction_factory, status
    ):
        transaction = transaction_factory(store)
        repo.transactions.find_by_id.return_value = transaction
        repo.stores.find_by_id.return_value = store

        result = await TransactionService(repo).update_status(
            transaction.id, status, manager_actor
        )

        assert result.status == status.value
        assert result.processed_at is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [
            TransactionStatus.PROCESSING,
            TransactionStatus.CANCELLED,
            TransactionStatus.DISPUTED,
            TransactionStatus.PENDING,
        ],
    )
    async def test_other_status_leaves_processed_at(
        self, repo, store, owner_actor, transaction_factory, status
    ):
        transaction = transaction_factory(store)
        repo.transactions.find_by_id.return_value = transaction
        repo.stores.find_by_id.return_value = store

        result = await TransactionService(repo).update_status(transaction.id, status, owner_actor)

        assert result.status == status.value
        assert result.processed_at is None

    @pytest.mark.asyncio
    async def test_any_transition_is_allowed(self, repo, store, owner_actor, transaction_factory):
        transaction = transaction_factory(store, status="COMPLETED")
        repo.transactions.find_by_id.return_value = transaction
        repo.stores.find_by_id.return_value = store

        result = await TransactionService(repo).update_status(
            transaction.id, TransactionStatus.PENDING, owner_actor
        )

        assert result.status == "PENDING"

    @pytest.mark.asyncio
    async def test_missing_transaction(self, repo, owner_actor):
        with pytest.raises(NotFoundError):
            await TransactionService(repo).update_status(
                uuid4(), TransactionStatus.COMPLETED, owner_actor
            )

    @pytest.mark.asyncio
    async def test_requires_staff(self, repo, store, stranger_actor, transaction_factory):
        transaction = transaction_factory(store)
        repo.transactions.find_by_id.return_value = transaction
        repo.stores.find_by_id.return_value = store

        with pytest.raises(AccessDeniedError):
            await TransactionService(repo).update_status(
                transaction.id, TransactionStatus.COMPLETED, stranger_actor
            )

        assert transaction.status == "PENDING"


class TestTransactionQueries:
    @pytest.mark.asyncio
    async def test_list_for_store(self, repo, store, owner_actor, transaction_factory):
        transactions = [transaction_factory(store)]
        repo.stores.find_by_id.return_value = store
        repo.transactions.find_many.return_value = transactions

        result = await TransactionService(repo).list_for_store(store.id, owner_actor)

        assert result == transactions

    @pytest.mark.asyncio
    async def test_get(self, repo, store, manager_actor, transaction_factory):
        transaction = transaction_factory(store)
        repo.transactions.find_by_id.return_value = transaction
        repo.stores.find_by_id.return_value = store

        assert await TransactionService(repo).get(transaction.id, manager_actor) is transaction

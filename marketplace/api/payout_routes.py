"""
Payout Routes - Bank payout details and transaction bookkeeping.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from marketplace.api.dependencies import get_actor, get_store_service, get_transaction_service
from marketplace.api.responses import bank_account_response, transaction_response
from marketplace.models.api import (
    BankAccountResponse,
    CreateTransactionRequest,
    TransactionResponse,
    UpdateBankAccountRequest,
    UpdateTransactionStatusRequest,
)
from marketplace.models.domain import Actor
from marketplace.services.stores import StoreService
from marketplace.services.transactions import TransactionService

router = APIRouter()


# ============================================================================
# Bank Account
# ============================================================================


@router.get(
    "/v1/stores/{store_id}/bank-account",
    response_model=BankAccountResponse,
    operation_id="getStoreBankAccount",
)
async def get_store_bank_account(
    store_id: UUID,
    actor: Actor | None = Depends(get_actor),
    service: StoreService = Depends(get_store_service),
) -> BankAccountResponse:
    return bank_account_response(await service.get_bank_account(store_id, actor))


@router.put(
    "/v1/stores/{store_id}/bank-account",
    response_model=BankAccountResponse,
    operation_id="updateBankAccount",
)
async def update_bank_account(
    store_id: UUID,
    request: UpdateBankAccountRequest,
    actor: Actor | None = Depends(get_actor),
    service: StoreService = Depends(get_store_service),
) -> BankAccountResponse:
    """Owner-only update of payout details."""
    return bank_account_response(await service.update_bank_account(store_id, request, actor))


# ============================================================================
# Transactions
# ============================================================================


@router.get(
    "/v1/stores/{store_id}/transactions",
    response_model=list[TransactionResponse],
    operation_id="getStoreTransactions",
)
async def get_store_transactions(
    store_id: UUID,
    actor: Actor | None = Depends(get_actor),
    service: TransactionService = Depends(get_transaction_service),
) -> list[TransactionResponse]:
    transactions = await service.list_for_store(store_id, actor)
    return [transaction_response(transaction) for transaction in transactions]


@router.post(
    "/v1/stores/{store_id}/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createTransaction",
)
async def create_transaction(
    store_id: UUID,
    request: CreateTransactionRequest,
    actor: Actor | None = Depends(get_actor),
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionResponse:
    """Record a PENDING transaction; net_amount is amount minus processing_fee."""
    return transaction_response(await service.create(store_id, request, actor))


@router.get(
    "/v1/transactions/{transaction_id}",
    response_model=TransactionResponse,
    operation_id="getTransaction",
)
async def get_transaction(
    transaction_id: UUID,
    actor: Actor | None = Depends(get_actor),
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionResponse:
    return transaction_response(await service.get(transaction_id, actor))


@router.patch(
    "/v1/transactions/{transaction_id}/status",
    response_model=TransactionResponse,
    operation_id="updateTransactionStatus",
)
async def update_transaction_status(
    transaction_id: UUID,
    request: UpdateTransactionStatusRequest,
    actor: Actor | None = Depends(get_actor),
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionResponse:
    """Write any status; COMPLETED and FAILED stamp processed_at."""
    return transaction_response(await service.update_status(transaction_id, request.status, actor))

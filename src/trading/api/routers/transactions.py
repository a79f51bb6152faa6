"""Transaction ledger endpoints."""

from fastapi import APIRouter, Depends, Query

from trading.api.deps import get_ledger_service, get_user_id
from trading.api.schemas.transaction import TransactionListResponse, TransactionResponse
from trading.core.exceptions import NotFoundError
from trading.domain.models import Transaction, TransactionStatus
from trading.services import LedgerService

router = APIRouter(prefix="/transactions", tags=["transactions"])


def to_transaction_response(txn: Transaction) -> TransactionResponse:
    """Convert a domain transaction to its API schema."""
    return TransactionResponse(
        id=txn.txn_id,
        user_id=txn.user_id,
        stock_id=txn.stock_id,
        symbol=txn.symbol,
        portfolio_id=txn.portfolio_id,
        type=txn.txn_type,
        quantity=txn.quantity,
        price=float(txn.price),
        total_amount=float(txn.total_amount),
        status=txn.status,
        error_message=txn.error_message,
        created_at=txn.created_at,
        processed_at=txn.processed_at,
    )


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """List the caller's transactions, newest first."""
    transactions = ledger.list_by_user(user_id, limit=limit, offset=offset)
    return TransactionListResponse(
        transactions=[to_transaction_response(t) for t in transactions],
        count=len(transactions),
    )


@router.get("/status/{status}", response_model=TransactionListResponse)
def list_transactions_by_status(
    status: TransactionStatus,
    user_id: str = Depends(get_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """List the caller's transactions in one status."""
    transactions = ledger.list_by_status(status, user_id=user_id)
    return TransactionListResponse(
        transactions=[to_transaction_response(t) for t in transactions],
        count=len(transactions),
    )


@router.get("/{txn_id}", response_model=TransactionResponse)
def get_transaction(
    txn_id: str,
    user_id: str = Depends(get_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Get one of the caller's transactions."""
    transaction = ledger.get_by_id(txn_id)
    if transaction.user_id != user_id:
        raise NotFoundError("Transaction", txn_id)
    return to_transaction_response(transaction)

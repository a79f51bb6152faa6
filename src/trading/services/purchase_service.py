"""Purchase service: the buy pipeline and its state machine."""

import logging
from contextlib import nullcontext
from decimal import Decimal, InvalidOperation
from typing import Callable, ContextManager, Optional

from sqlalchemy.exc import SQLAlchemyError

from trading.core.exceptions import AppError, StockNotFoundError, ValidationError
from trading.domain.models import (
    PRICE_DECIMAL_PLACES,
    RejectionReason,
    Transaction,
    TransactionStatus,
    TransactionType,
    decimal_places,
)
from trading.domain.views import PurchaseResult, VendorFailure, VendorFailureKind
from trading.providers.vendor_client import VendorClient
from trading.services.ledger_service import LedgerService, TransactionDraft
from trading.services.portfolio_service import PortfolioService
from trading.services.price_cache import PriceCache

logger = logging.getLogger(__name__)

_FAILURE_REASONS = {
    VendorFailureKind.UNAVAILABLE: RejectionReason.VENDOR_UNAVAILABLE,
    VendorFailureKind.REJECTED: RejectionReason.VENDOR_REJECTED,
    VendorFailureKind.BAD_RESPONSE: RejectionReason.VENDOR_BAD_RESPONSE,
}

PORTFOLIO_PENDING_MESSAGE = "Purchase completed; portfolio update pending"


class PurchaseService:
    """
    Executes stock purchases against the vendor.

    Order of effects for one buy:
      1. price gate against the cached price (no ledger row on rejection)
      2. PENDING ledger entry
      3. vendor order
      4. terminal ledger transition, committed on its own
      5. on SUCCESS, the portfolio update in one unit of work

    Step 5 can be replayed from the ledger with reconcile_pending_fills().
    """

    def __init__(
        self,
        price_cache: PriceCache,
        ledger: LedgerService,
        vendor: VendorClient,
        portfolio_service: PortfolioService,
        unit_of_work: Callable[[], ContextManager] = nullcontext,
        price_tolerance: Decimal = Decimal("0.02"),
    ):
        self._price_cache = price_cache
        self._ledger = ledger
        self._vendor = vendor
        self._portfolio_service = portfolio_service
        self._unit_of_work = unit_of_work
        self._tolerance = price_tolerance

    def buy(
        self,
        symbol: str,
        requested_price: Decimal,
        quantity: int,
        user_id: str,
        idempotency_key: Optional[str] = None,
    ) -> PurchaseResult:
        """
        Buy quantity shares of symbol at requested_price for user_id.

        Business rejections come back as PurchaseResult(success=False).
        Raises ValidationError for malformed input, StockNotFoundError for
        an unknown symbol and VendorUnavailableError when no current price
        can be obtained.
        """
        symbol, requested_price = self._validate(symbol, requested_price, quantity, user_id)

        if idempotency_key:
            existing = self._ledger.get_by_idempotency_key(user_id, idempotency_key)
            if existing:
                logger.info("Replaying transaction %s for idempotency key", existing.txn_id)
                return self._replay(existing)

        stock = self._price_cache.get_stock(symbol)
        if stock is None:
            raise StockNotFoundError(symbol)

        if not self.within_tolerance(stock.price, requested_price):
            message = (
                f"Price {requested_price} is outside {(self._tolerance * 100).normalize()}% "
                f"tolerance of current price {stock.price}"
            )
            logger.warning(message)
            return PurchaseResult(
                success=False,
                message=message,
                reason=RejectionReason.PRICE_TOLERANCE,
            )

        transaction, created = self._ledger.create_or_get(
            TransactionDraft(
                user_id=user_id,
                stock_id=stock.stock_id,
                quantity=quantity,
                price=requested_price,
                txn_type=TransactionType.BUY,
                idempotency_key=idempotency_key,
            )
        )
        if not created:
            return self._replay(transaction)

        logger.info(
            "Attempting to buy %d shares of %s at %s (transaction %s)",
            quantity, symbol, requested_price, transaction.txn_id,
        )
        result = self._vendor.submit_buy(symbol, requested_price, quantity)

        if isinstance(result, VendorFailure):
            self._ledger.transition(transaction.txn_id, TransactionStatus.FAILED, result.message)
            logger.error(
                "Failed to purchase %s for transaction %s: %s",
                symbol, transaction.txn_id, result.message,
            )
            return PurchaseResult(
                success=False,
                message=result.message,
                transaction_id=transaction.txn_id,
                status=TransactionStatus.FAILED,
                reason=_FAILURE_REASONS[result.kind],
            )

        transaction = self._ledger.transition(transaction.txn_id, TransactionStatus.SUCCESS)
        applied = self._apply_to_portfolio(transaction)
        logger.info("Successfully purchased %d shares of %s", quantity, symbol)

        return PurchaseResult(
            success=True,
            message=(result.message or "Purchase completed") if applied else PORTFOLIO_PENDING_MESSAGE,
            transaction_id=transaction.txn_id,
            status=TransactionStatus.SUCCESS,
        )

    def within_tolerance(self, current_price: Decimal, requested_price: Decimal) -> bool:
        """|current - requested| <= current * tolerance (boundary accepted)."""
        return abs(current_price - requested_price) <= current_price * self._tolerance

    def reconcile_pending_fills(self) -> int:
        """
        Apply every SUCCESS BUY whose portfolio update never happened.

        Returns the number of transactions now applied. Safe to run
        repeatedly and alongside live purchases.
        """
        pending = self._ledger.list_unapplied_fills()
        reconciled = sum(1 for txn in pending if self._apply_to_portfolio(txn))
        if pending:
            logger.info("Reconciled %d of %d unapplied fills", reconciled, len(pending))
        return reconciled

    def _apply_to_portfolio(self, transaction: Transaction) -> bool:
        """
        Fold a SUCCESS BUY into the user's default portfolio.

        The applied marker is claimed first, inside the same unit of work as
        the position upsert, so a fill is applied at most once.
        """
        try:
            portfolio = self._portfolio_service.get_or_create_default(transaction.user_id)
            with self._unit_of_work():
                if not self._ledger.mark_applied(transaction.txn_id, portfolio.portfolio_id):
                    logger.info("Transaction %s already applied to a portfolio", transaction.txn_id)
                    return True
                self._portfolio_service.apply_fill(
                    portfolio.portfolio_id,
                    transaction.stock_id,
                    transaction.quantity,
                    transaction.price,
                )
        except (AppError, SQLAlchemyError):
            logger.error(
                "Portfolio update failed for filled transaction %s; reconciliation required",
                transaction.txn_id,
                exc_info=True,
            )
            return False
        return True

    @staticmethod
    def _replay(transaction: Transaction) -> PurchaseResult:
        if transaction.status == TransactionStatus.SUCCESS:
            return PurchaseResult(
                success=True,
                message="Purchase already completed"
                if transaction.portfolio_applied_at else PORTFOLIO_PENDING_MESSAGE,
                transaction_id=transaction.txn_id,
                status=transaction.status,
            )
        if transaction.status == TransactionStatus.PENDING:
            return PurchaseResult(
                success=False,
                message="Purchase is still being processed",
                transaction_id=transaction.txn_id,
                status=transaction.status,
                reason=RejectionReason.IN_PROGRESS,
            )
        return PurchaseResult(
            success=False,
            message=transaction.error_message or "Purchase failed",
            transaction_id=transaction.txn_id,
            status=transaction.status,
        )

    @staticmethod
    def _validate(
        symbol: str,
        requested_price: Decimal,
        quantity: int,
        user_id: str,
    ) -> tuple[str, Decimal]:
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise ValidationError("symbol is required")
        if not user_id:
            raise ValidationError("user_id is required")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("quantity must be a positive integer")
        try:
            price = requested_price if isinstance(requested_price, Decimal) else Decimal(str(requested_price))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid price: {requested_price}") from exc
        if not price.is_finite() or price <= 0:
            raise ValidationError("price must be positive")
        if decimal_places(price) > PRICE_DECIMAL_PLACES:
            raise ValidationError(f"price supports at most {PRICE_DECIMAL_PLACES} decimal places")
        return symbol, price

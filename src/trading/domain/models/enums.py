"""Enumerations for domain models."""

from enum import Enum


class TransactionType(str, Enum):
    """Types of ledger transactions."""

    BUY = "BUY"
    SELL = "SELL"  # recorded type only; the pipeline executes buys


class TransactionStatus(str, Enum):
    """Lifecycle states of a ledger transaction."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


class RejectionReason(str, Enum):
    """Why a buy request did not produce a fill."""

    PRICE_TOLERANCE = "PRICE_TOLERANCE"
    VENDOR_UNAVAILABLE = "VENDOR_UNAVAILABLE"
    VENDOR_REJECTED = "VENDOR_REJECTED"
    VENDOR_BAD_RESPONSE = "VENDOR_BAD_RESPONSE"
    IN_PROGRESS = "IN_PROGRESS"

"""Core utilities and shared functionality."""

from trading.core.timezone import (
    utc_now,
    to_utc_naive,
    day_bounds_utc,
    parse_datetime_utc,
)
from trading.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    StockNotFoundError,
    InvalidTransitionError,
    VendorUnavailableError,
    StorageError,
)
from trading.core.retry import RetryOutcome, call_with_retry

__all__ = [
    "utc_now",
    "to_utc_naive",
    "day_bounds_utc",
    "parse_datetime_utc",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "StockNotFoundError",
    "InvalidTransitionError",
    "VendorUnavailableError",
    "StorageError",
    "RetryOutcome",
    "call_with_retry",
]

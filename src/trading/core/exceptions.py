"""Application-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class StockNotFoundError(NotFoundError):
    """Raised when a symbol is unknown even after a cache refresh."""

    def __init__(self, symbol: str):
        super().__init__("Stock", symbol)
        self.code = "STOCK_NOT_FOUND"
        self.symbol = symbol


class InvalidTransitionError(AppError):
    """Raised when a transaction status change is not allowed."""

    def __init__(self, txn_id: str, current: str, requested: str):
        super().__init__(
            f"Transaction {txn_id} cannot move from {current} to {requested}",
            code="INVALID_TRANSITION",
        )


class VendorUnavailableError(AppError):
    """Raised when the vendor cannot provide data the caller depends on."""

    def __init__(self, message: str, kind: Optional[str] = None):
        code = "VENDOR_BAD_RESPONSE" if kind == "BAD_RESPONSE" else "VENDOR_UNAVAILABLE"
        super().__init__(message, code=code)
        self.kind = kind


class StorageError(AppError):
    """Raised when a write to the persistence layer fails."""

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")

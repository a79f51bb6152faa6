"""Vendor API result types."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


class VendorFailureKind(str, Enum):
    """Classification of a vendor call that did not succeed."""

    UNAVAILABLE = "UNAVAILABLE"  # transient failures, retries exhausted
    REJECTED = "REJECTED"  # definitive 4xx / business error
    BAD_RESPONSE = "BAD_RESPONSE"  # unexpected payload


@dataclass
class VendorStock:
    """One listing item as reported by the vendor."""

    symbol: str
    name: str
    price: Decimal


@dataclass
class ListingPage:
    """One page of the vendor's stock listing."""

    items: list[VendorStock] = field(default_factory=list)
    next_token: Optional[str] = None


@dataclass
class VendorConfirmation:
    """Vendor acknowledgement of a filled buy order."""

    symbol: str
    price: Decimal
    quantity: int
    message: Optional[str] = None


@dataclass
class VendorFailure:
    """Classified vendor failure; returned, never raised."""

    kind: VendorFailureKind
    message: str
    status_code: Optional[int] = None
    attempts: int = 1

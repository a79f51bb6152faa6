"""Stub vendor for offline/development use."""

from decimal import Decimal
from typing import Optional

from trading.domain.views import (
    ListingPage,
    VendorConfirmation,
    VendorFailure,
    VendorFailureKind,
    VendorStock,
)


# Deterministic listing served by the stub vendor
_STUB_LISTING: list[tuple[str, str, Decimal]] = [
    ("AAPL", "Apple Inc.", Decimal("175.50")),
    ("GOOGL", "Alphabet Inc.", Decimal("142.30")),
    ("MSFT", "Microsoft Corporation", Decimal("378.85")),
    ("TSLA", "Tesla, Inc.", Decimal("248.42")),
    ("AMZN", "Amazon.com Inc.", Decimal("168.72")),
]


class StubVendorClient:
    """
    In-memory vendor with a fixed listing.

    Pages are `page_size` items long and the next token is the offset of
    the following page. Every buy of a listed symbol is filled.
    """

    def __init__(
        self,
        listing: Optional[list[tuple[str, str, Decimal]]] = None,
        page_size: int = 50,
    ):
        self._listing = [
            VendorStock(symbol=symbol.upper(), name=name, price=price)
            for symbol, name, price in (listing if listing is not None else _STUB_LISTING)
        ]
        self._page_size = page_size

    def set_price(self, symbol: str, price: Decimal) -> None:
        """Change (or add) a listed price."""
        symbol = symbol.upper()
        for item in self._listing:
            if item.symbol == symbol:
                item.price = price
                return
        self._listing.append(VendorStock(symbol=symbol, name=symbol, price=price))

    def fetch_listing(self, next_token: Optional[str] = None) -> ListingPage:
        start = int(next_token) if next_token else 0
        end = start + self._page_size
        page = [
            VendorStock(symbol=s.symbol, name=s.name, price=s.price)
            for s in self._listing[start:end]
        ]
        return ListingPage(
            items=page,
            next_token=str(end) if end < len(self._listing) else None,
        )

    def submit_buy(self, symbol: str, price: Decimal, quantity: int):
        symbol = symbol.upper()
        if not any(s.symbol == symbol for s in self._listing):
            return VendorFailure(
                kind=VendorFailureKind.REJECTED,
                message=f"Unknown symbol: {symbol}",
                status_code=404,
            )
        return VendorConfirmation(symbol=symbol, price=price, quantity=quantity)

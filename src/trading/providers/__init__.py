"""Vendor integration: client protocol, HTTP client and offline stub."""

from trading.providers.vendor_client import VendorClient, HttpVendorClient, is_transient
from trading.providers.stub_provider import StubVendorClient

__all__ = [
    "VendorClient",
    "HttpVendorClient",
    "is_transient",
    "StubVendorClient",
]

"""Vendor API client with bounded retry."""

import logging
import time
from decimal import Decimal
from typing import Callable, Optional, Protocol, Union

import requests

from trading.core.retry import RetryOutcome, call_with_retry
from trading.domain.views import (
    ListingPage,
    VendorConfirmation,
    VendorFailure,
    VendorFailureKind,
    VendorStock,
)

logger = logging.getLogger(__name__)

ListingResult = Union[ListingPage, VendorFailure]
BuyResult = Union[VendorConfirmation, VendorFailure]


class VendorClient(Protocol):
    """
    Interface to the external price/execution vendor.

    Implementations never raise for vendor problems: every call returns
    either its typed result or a VendorFailure.
    """

    def fetch_listing(self, next_token: Optional[str] = None) -> ListingResult:
        """Fetch one page of the stock listing."""
        ...

    def submit_buy(self, symbol: str, price: Decimal, quantity: int) -> BuyResult:
        """Submit a buy order and wait for the vendor's answer."""
        ...


class VendorHTTPError(Exception):
    """Non-2xx answer from the vendor (internal to the retry loop)."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")


def is_transient(exc: BaseException) -> bool:
    """Network errors, timeouts, 5xx and 429 are worth another attempt."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, VendorHTTPError):
        return exc.status_code >= 500 or exc.status_code == 429
    return False


class HttpVendorClient:
    """
    requests-based vendor client.

    Each attempt carries `timeout_seconds`; transient failures are retried
    `retry_attempts` more times with a fixed delay in between.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        retry_attempts: int = 3,
        retry_delay_seconds: float = 1.0,
        timeout_seconds: float = 10.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._retry_attempts = retry_attempts
        self._retry_delay = retry_delay_seconds
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._sleep = sleep

    def fetch_listing(self, next_token: Optional[str] = None) -> ListingResult:
        """GET /stocks, following the vendor's pagination token."""
        params = {"nextToken": next_token} if next_token else {}
        response = self._request("GET", "/stocks", params=params)
        if isinstance(response, VendorFailure):
            return response

        try:
            payload = response.json()
            if payload.get("status") != 200:
                return VendorFailure(
                    kind=VendorFailureKind.BAD_RESPONSE,
                    message=f"Invalid response from vendor API (status={payload.get('status')})",
                    status_code=response.status_code,
                )
            data = payload["data"]
            items = [
                VendorStock(
                    symbol=str(item["symbol"]).upper(),
                    name=item.get("name") or str(item["symbol"]),
                    price=Decimal(str(item["price"])),
                )
                for item in data.get("items") or []
            ]
        except (ValueError, KeyError, TypeError, AttributeError, ArithmeticError) as exc:
            return VendorFailure(
                kind=VendorFailureKind.BAD_RESPONSE,
                message=f"Malformed listing from vendor API: {exc}",
                status_code=response.status_code,
            )

        logger.info("Fetched %d stocks from vendor", len(items))
        return ListingPage(items=items, next_token=data.get("nextToken") or None)

    def submit_buy(self, symbol: str, price: Decimal, quantity: int) -> BuyResult:
        """POST /stocks/{symbol}/buy."""
        symbol = symbol.upper()
        response = self._request(
            "POST",
            f"/stocks/{symbol}/buy",
            json={"price": float(price), "quantity": quantity},
        )
        if isinstance(response, VendorFailure):
            return response

        message = None
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            message = payload.get("message")
            body_status = payload.get("status")
            if isinstance(body_status, int) and body_status >= 400:
                return VendorFailure(
                    kind=VendorFailureKind.REJECTED,
                    message=message or f"Vendor rejected order (status={body_status})",
                    status_code=body_status,
                )

        return VendorConfirmation(symbol=symbol, price=price, quantity=quantity, message=message)

    def _request(self, method: str, path: str, **kwargs) -> Union[requests.Response, VendorFailure]:
        url = f"{self._base_url}{path}"
        headers = {"x-api-key": self._api_key}

        def _send() -> requests.Response:
            response = self._session.request(
                method, url, headers=headers, timeout=self._timeout, **kwargs
            )
            if response.status_code >= 400:
                raise VendorHTTPError(response.status_code, _error_message(response))
            return response

        outcome = call_with_retry(
            _send,
            max_attempts=self._retry_attempts + 1,
            delay_seconds=self._retry_delay,
            is_transient=is_transient,
            sleep=self._sleep,
        )
        if outcome.succeeded:
            return outcome.value
        return self._classify(method, path, outcome)

    @staticmethod
    def _classify(method: str, path: str, outcome: RetryOutcome) -> VendorFailure:
        exc = outcome.error
        status_code = exc.status_code if isinstance(exc, VendorHTTPError) else None

        if outcome.exhausted:
            logger.error(
                "Vendor %s %s unavailable after %d attempts: %s",
                method, path, outcome.attempts, exc,
            )
            return VendorFailure(
                kind=VendorFailureKind.UNAVAILABLE,
                message=f"Vendor API temporarily unavailable: {exc}",
                status_code=status_code,
                attempts=outcome.attempts,
            )

        if isinstance(exc, VendorHTTPError):
            logger.warning("Vendor %s %s rejected: %s", method, path, exc)
            return VendorFailure(
                kind=VendorFailureKind.REJECTED,
                message=exc.message,
                status_code=status_code,
                attempts=outcome.attempts,
            )

        if not isinstance(exc, requests.RequestException):
            logger.exception("Unexpected error calling vendor %s %s", method, path, exc_info=exc)
        return VendorFailure(
            kind=VendorFailureKind.UNAVAILABLE,
            message=f"Vendor API request failed: {exc}",
            attempts=outcome.attempts,
        )


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return (response.text or response.reason or "").strip()[:200] or "no response body"

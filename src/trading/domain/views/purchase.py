"""Outcome of a buy request."""

from dataclasses import dataclass
from typing import Optional

from trading.domain.models.enums import RejectionReason, TransactionStatus


@dataclass
class PurchaseResult:
    """
    Structured answer to a buy request.

    transaction_id is present whenever a ledger entry was opened, so the
    caller can look up the authoritative final state later.
    """

    success: bool
    message: Optional[str] = None
    transaction_id: Optional[str] = None
    status: Optional[TransactionStatus] = None
    reason: Optional[RejectionReason] = None

"""View models for ledger reporting."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from trading.domain.models import Transaction


@dataclass
class DateRangeTransactions:
    """Transactions in a window, grouped by status."""

    successful: list[Transaction] = field(default_factory=list)
    failed: list[Transaction] = field(default_factory=list)
    pending: list[Transaction] = field(default_factory=list)

    @property
    def all(self) -> list[Transaction]:
        return [*self.successful, *self.failed, *self.pending]


@dataclass
class DailyStats:
    """Counters for one report day."""

    total_transactions: int = 0
    successful_transactions: int = 0
    failed_transactions: int = 0
    pending_transactions: int = 0
    total_volume: int = 0
    total_value: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class DailyReport:
    """Input for the daily email report."""

    report_date: date
    stats: DailyStats
    successful_transactions: list[Transaction] = field(default_factory=list)
    failed_transactions: list[Transaction] = field(default_factory=list)

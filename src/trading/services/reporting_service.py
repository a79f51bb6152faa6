"""Reporting service: read-only views over the ledger."""

from datetime import date, datetime
from decimal import Decimal

from trading.core.timezone import day_bounds_utc
from trading.domain.views import DailyReport, DailyStats, DateRangeTransactions
from trading.services.ledger_service import LedgerService


class ReportingService:
    """
    Transaction reports for a date range or a report day.

    Days are calendar days in report_timezone. Nothing here writes, so
    repeated calls over the same data return identical results.
    """

    def __init__(self, ledger: LedgerService, report_timezone: str = "US/Eastern"):
        self._ledger = ledger
        self._report_timezone = report_timezone

    def get_transactions_for_date_range(self, start: datetime, end: datetime) -> DateRangeTransactions:
        """Transactions created within [start, end] (naive UTC), grouped by status."""
        return self._ledger.list_by_date_range(start, end)

    def get_daily_stats(self, day: date) -> DailyStats:
        """
        Counters for one report day.

        total_volume sums the quantity of every transaction of the day;
        total_value sums total_amount of the successful ones only.
        """
        return self._stats(self._transactions_for_day(day))

    def generate_daily_report(self, day: date) -> DailyReport:
        """Stats plus the successful and failed transactions of the day."""
        grouped = self._transactions_for_day(day)
        return DailyReport(
            report_date=day,
            stats=self._stats(grouped),
            successful_transactions=grouped.successful,
            failed_transactions=grouped.failed,
        )

    def _transactions_for_day(self, day: date) -> DateRangeTransactions:
        start, end = day_bounds_utc(day, self._report_timezone)
        return self._ledger.list_by_date_range(start, end)

    @staticmethod
    def _stats(grouped: DateRangeTransactions) -> DailyStats:
        all_transactions = grouped.all
        return DailyStats(
            total_transactions=len(all_transactions),
            successful_transactions=len(grouped.successful),
            failed_transactions=len(grouped.failed),
            pending_transactions=len(grouped.pending),
            total_volume=sum(t.quantity for t in all_transactions),
            total_value=sum((t.total_amount for t in grouped.successful), Decimal("0")),
        )

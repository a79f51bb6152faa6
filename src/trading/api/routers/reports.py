"""Report endpoints consumed by the daily report scheduler."""

from datetime import date, datetime
from typing import Optional

import pytz
from fastapi import APIRouter, Depends, Query

from trading.api.deps import get_reporting_service
from trading.api.routers.transactions import to_transaction_response
from trading.api.schemas.report import DailyReportResponse, DailyStatsResponse, DateRangeResponse
from trading.config.settings import get_settings
from trading.core.exceptions import ValidationError
from trading.core.timezone import parse_datetime_utc
from trading.domain.views import DailyStats
from trading.services import ReportingService

router = APIRouter(prefix="/reports", tags=["reports"])


def _report_day(value: Optional[date]) -> date:
    if value is not None:
        return value
    return datetime.now(pytz.timezone(get_settings().report_timezone)).date()


def _parse(value: str, field: str) -> datetime:
    try:
        return parse_datetime_utc(value)
    except (ValueError, OverflowError) as exc:
        raise ValidationError(f"Invalid {field}: {value}") from exc


def _stats_response(stats: DailyStats) -> DailyStatsResponse:
    return DailyStatsResponse(
        total_transactions=stats.total_transactions,
        successful_transactions=stats.successful_transactions,
        failed_transactions=stats.failed_transactions,
        pending_transactions=stats.pending_transactions,
        total_volume=stats.total_volume,
        total_value=float(stats.total_value),
    )


@router.get("/daily", response_model=DailyReportResponse)
def daily_report(
    day: Optional[date] = Query(None, alias="date", description="Report day (defaults to today)"),
    service: ReportingService = Depends(get_reporting_service),
):
    """Daily report: stats plus successful and failed transactions."""
    report = service.generate_daily_report(_report_day(day))
    return DailyReportResponse(
        report_date=report.report_date,
        stats=_stats_response(report.stats),
        successful_transactions=[to_transaction_response(t) for t in report.successful_transactions],
        failed_transactions=[to_transaction_response(t) for t in report.failed_transactions],
    )


@router.get("/daily/stats", response_model=DailyStatsResponse)
def daily_stats(
    day: Optional[date] = Query(None, alias="date"),
    service: ReportingService = Depends(get_reporting_service),
):
    """Counters for one report day."""
    return _stats_response(service.get_daily_stats(_report_day(day)))


@router.get("/range", response_model=DateRangeResponse)
def transactions_in_range(
    start: str = Query(..., description="ISO datetime, UTC when no offset is given"),
    end: str = Query(..., description="ISO datetime, UTC when no offset is given"),
    service: ReportingService = Depends(get_reporting_service),
):
    """Transactions created within [start, end], grouped by status."""
    grouped = service.get_transactions_for_date_range(_parse(start, "start"), _parse(end, "end"))
    return DateRangeResponse(
        successful=[to_transaction_response(t) for t in grouped.successful],
        failed=[to_transaction_response(t) for t in grouped.failed],
        pending=[to_transaction_response(t) for t in grouped.pending],
    )

"""Pydantic schemas for report endpoints."""

from datetime import date

from pydantic import BaseModel

from trading.api.schemas.transaction import TransactionResponse


class DailyStatsResponse(BaseModel):
    """Counters for one report day."""

    total_transactions: int
    successful_transactions: int
    failed_transactions: int
    pending_transactions: int
    total_volume: int
    total_value: float


class DailyReportResponse(BaseModel):
    """Daily report payload handed to the email renderer."""

    report_date: date
    stats: DailyStatsResponse
    successful_transactions: list[TransactionResponse]
    failed_transactions: list[TransactionResponse]


class DateRangeResponse(BaseModel):
    """Transactions in a window grouped by status."""

    successful: list[TransactionResponse]
    failed: list[TransactionResponse]
    pending: list[TransactionResponse]

"""API request/response schemas."""

from trading.api.schemas.stock import StockResponse, StockListResponse, BuyRequest, BuyResponse
from trading.api.schemas.portfolio import (
    PortfolioCreate,
    PositionResponse,
    PortfolioResponse,
    PortfolioSummaryResponse,
)
from trading.api.schemas.transaction import TransactionResponse, TransactionListResponse
from trading.api.schemas.report import DailyStatsResponse, DailyReportResponse, DateRangeResponse

__all__ = [
    "StockResponse",
    "StockListResponse",
    "BuyRequest",
    "BuyResponse",
    "PortfolioCreate",
    "PositionResponse",
    "PortfolioResponse",
    "PortfolioSummaryResponse",
    "TransactionResponse",
    "TransactionListResponse",
    "DailyStatsResponse",
    "DailyReportResponse",
    "DateRangeResponse",
]

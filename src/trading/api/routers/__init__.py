"""API routers package."""

from trading.api.routers.stocks import router as stocks_router
from trading.api.routers.portfolios import router as portfolios_router
from trading.api.routers.transactions import router as transactions_router
from trading.api.routers.reports import router as reports_router

__all__ = [
    "stocks_router",
    "portfolios_router",
    "transactions_router",
    "reports_router",
]

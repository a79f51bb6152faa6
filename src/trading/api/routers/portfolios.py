"""Portfolio endpoints (scoped to the calling user)."""

from fastapi import APIRouter, Depends

from trading.api.deps import get_portfolio_service, get_user_id
from trading.api.schemas.portfolio import (
    PortfolioCreate,
    PortfolioResponse,
    PortfolioSummaryResponse,
    PositionResponse,
)
from trading.domain.views import PortfolioView
from trading.services import PortfolioService

router = APIRouter(prefix="/portfolios", tags=["portfolios"])


def _optional_float(value):
    return float(value) if value is not None else None


def _to_response(view: PortfolioView) -> PortfolioResponse:
    return PortfolioResponse(
        id=view.portfolio_id,
        name=view.name,
        positions=[
            PositionResponse(
                stock_id=p.stock_id,
                symbol=p.symbol,
                name=p.name,
                quantity=p.quantity,
                average_price=float(p.average_price),
                current_price=_optional_float(p.current_price),
                total_value=_optional_float(p.total_value),
                gain=_optional_float(p.gain),
                gain_percentage=_optional_float(p.gain_percentage),
            )
            for p in view.positions
        ],
        total_value=float(view.total_value),
        total_cost=float(view.total_cost),
        total_gain=float(view.total_gain),
        total_gain_percentage=float(view.total_gain_percentage),
        created_at=view.created_at,
        updated_at=view.updated_at,
    )


@router.get("", response_model=list[PortfolioResponse])
def list_portfolios(
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """List the user's portfolios with current valuation."""
    return [_to_response(v) for v in service.list_by_user(user_id)]


@router.post("", response_model=PortfolioResponse, status_code=201)
def create_portfolio(
    data: PortfolioCreate,
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Create an empty named portfolio."""
    portfolio = service.create_portfolio(user_id, data.name)
    return _to_response(service.get_portfolio(portfolio.portfolio_id, user_id))


@router.get("/summary", response_model=PortfolioSummaryResponse)
def portfolio_summary(
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Totals across all of the user's portfolios."""
    summary = service.summary(user_id)
    return PortfolioSummaryResponse(
        total_portfolios=summary.total_portfolios,
        total_value=float(summary.total_value),
        total_gain=float(summary.total_gain),
        total_gain_percentage=float(summary.total_gain_percentage),
        total_stocks=summary.total_stocks,
    )


@router.get("/{portfolio_id}", response_model=PortfolioResponse)
def get_portfolio(
    portfolio_id: str,
    user_id: str = Depends(get_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Get one of the user's portfolios."""
    return _to_response(service.get_portfolio(portfolio_id, user_id))

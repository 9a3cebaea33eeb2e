"""Dashboard statistics and analytics aggregates"""
from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import Any, Dict, List, Optional, Tuple
from datetime import date

from database import get_session
from models import User
from dependencies import require_route
from services import analytics_service
from services.inventory_errors import InventoryError, http_error_for
from utils.cache import AnalyticsCache, CacheKeys, CacheTTL
from validators.stock_validator import resolve_date_range

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


def _window(date_from: Optional[date], date_to: Optional[date]) -> Tuple[date, date]:
    try:
        return resolve_date_range(date_from, date_to)
    except InventoryError as e:
        raise http_error_for(e)


@router.get("/dashboard")
def dashboard_stats(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("dashboard"))
) -> Dict[str, Any]:
    today = date.today()
    return AnalyticsCache.get_or_compute(
        CacheKeys.DASHBOARD_STATS.format(day=today.isoformat()),
        CacheTTL.DASHBOARD_STATS,
        lambda: analytics_service.load_dashboard_stats(session, today),
    )


@router.get("/stock-trends")
def stock_trends(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("analytics"))
) -> List[Dict[str, Any]]:
    """Daily stock-in and stock-out totals, one point per day"""
    start, end = _window(date_from, date_to)
    return AnalyticsCache.get_or_compute(
        CacheKeys.STOCK_TRENDS.format(date_from=start, date_to=end),
        CacheTTL.ANALYTICS,
        lambda: analytics_service.load_stock_trends(session, start, end),
    )


@router.get("/category-distribution")
def category_distribution(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("analytics"))
) -> List[Dict[str, Any]]:
    return AnalyticsCache.get_or_compute(
        CacheKeys.CATEGORY_DISTRIBUTION,
        CacheTTL.ANALYTICS,
        lambda: analytics_service.load_category_distribution(session),
    )


@router.get("/moving-items")
def moving_items(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("analytics"))
) -> List[Dict[str, Any]]:
    start, end = _window(date_from, date_to)
    return AnalyticsCache.get_or_compute(
        CacheKeys.MOVING_ITEMS.format(date_from=start, date_to=end),
        CacheTTL.ANALYTICS,
        lambda: analytics_service.load_moving_items(session, start, end),
    )


@router.get("/expiry-loss")
def expiry_loss(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("analytics"))
) -> List[Dict[str, Any]]:
    today = date.today()
    return AnalyticsCache.get_or_compute(
        CacheKeys.EXPIRY_LOSS.format(day=today.isoformat()),
        CacheTTL.ANALYTICS,
        lambda: analytics_service.load_expiry_loss(session, today),
    )


@router.get("/supplier-performance")
def supplier_performance(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("analytics"))
) -> List[Dict[str, Any]]:
    return AnalyticsCache.get_or_compute(
        CacheKeys.SUPPLIER_PERFORMANCE,
        CacheTTL.ANALYTICS,
        lambda: analytics_service.load_supplier_performance(session),
    )


@router.get("/revenue")
def revenue_vs_inventory_cost(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("analytics"))
) -> List[Dict[str, Any]]:
    start, end = _window(date_from, date_to)
    return AnalyticsCache.get_or_compute(
        CacheKeys.REVENUE.format(date_from=start, date_to=end),
        CacheTTL.ANALYTICS,
        lambda: analytics_service.load_revenue(session, start, end),
    )

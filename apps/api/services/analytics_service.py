"""
Inventory analytics.

The aggregators are pure functions over rows already loaded from the
database, so identical inputs always give identical output. The `load_*`
helpers fetch the rows for a day window `[date_from, date_to]` (both ends
inclusive) and feed them to the aggregators.

Movement-based aggregates only contain medicines that actually moved. The
date-bucketed series (stock trends, revenue) emit one zero-filled point per
day, oldest first.
"""
import logging
from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlmodel import Session, select

from models import (
    Medicine, MovementType, PurchaseOrder, PurchaseOrderStatus, Sale, StockMovement, Supplier
)
from services.inventory_status import days_until_expiry
from validators.business_rules import get_inventory_rules
from utils.clock import day_window, local_day

logger = logging.getLogger(__name__)


def _days_in_range(date_from: date, date_to: date) -> List[date]:
    span = (date_to - date_from).days + 1
    return [date_from + timedelta(days=offset) for offset in range(span)]


def _money(value: float) -> float:
    return round(value, 2)


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ==================== PURE AGGREGATORS ====================

def stock_trends(movements: Iterable[StockMovement], date_from: date, date_to: date) -> List[Dict[str, Any]]:
    """Units moved in and out per calendar day"""
    buckets = {day: {"stock_in": 0, "stock_out": 0} for day in _days_in_range(date_from, date_to)}

    for movement in movements:
        bucket = buckets.get(local_day(movement.created_at))
        if bucket is None:
            continue
        if movement.type == MovementType.STOCK_IN:
            bucket["stock_in"] += movement.quantity
        else:
            bucket["stock_out"] += movement.quantity

    return [
        {"date": day.isoformat(), "stock_in": totals["stock_in"], "stock_out": totals["stock_out"]}
        for day, totals in buckets.items()
    ]


def category_distribution(medicines: Iterable[Medicine]) -> List[Dict[str, Any]]:
    """Item count and stock value per category, in order of first appearance"""
    grouped: "OrderedDict[str, Dict[str, float]]" = OrderedDict()

    for medicine in medicines:
        group = grouped.setdefault(medicine.category, {"count": 0, "value": 0.0})
        group["count"] += 1
        group["value"] += medicine.quantity * medicine.unit_price

    return [
        {"category": category, "count": group["count"], "value": _money(group["value"])}
        for category, group in grouped.items()
    ]


def moving_items(movements: Iterable[StockMovement], medicines: Sequence[Medicine]) -> List[Dict[str, Any]]:
    """Rank medicines by units moved and split the ranking in half.

    Positions before floor(n / 2) are `fast`, the rest `slow`. The sort is
    stable, so ties keep catalog order.
    """
    totals: Dict[int, int] = {}
    for movement in movements:
        totals[movement.medicine_id] = totals.get(movement.medicine_id, 0) + movement.quantity

    items = [
        {"id": medicine.id, "name": medicine.name, "total_movement": totals[medicine.id], "movement_type": "fast"}
        for medicine in medicines
        if medicine.id in totals
    ]
    items.sort(key=lambda item: item["total_movement"], reverse=True)

    midpoint = len(items) // 2
    for index, item in enumerate(items):
        if index >= midpoint:
            item["movement_type"] = "slow"
    return items


def expiry_loss(medicines: Iterable[Medicine], today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Stocked medicines expiring within the warning window, soonest first"""
    today = today or date.today()
    horizon = today + timedelta(days=get_inventory_rules().EXPIRY_WARNING_DAYS)

    at_risk = [m for m in medicines if m.expiry_date <= horizon and m.quantity > 0]
    at_risk.sort(key=lambda m: (m.expiry_date, m.id or 0))

    return [
        {
            "id": m.id,
            "name": m.name,
            "quantity": m.quantity,
            "unit_price": m.unit_price,
            "expiry_date": m.expiry_date.isoformat(),
            "days_until_expiry": days_until_expiry(m.expiry_date, today),
            "potential_loss": _money(m.quantity * m.unit_price),
        }
        for m in at_risk
    ]


def supplier_performance(suppliers: Iterable[Supplier], orders: Iterable[PurchaseOrder]) -> List[Dict[str, Any]]:
    """Order counts, delivery speed and spend per supplier"""
    orders = list(orders)
    results = []

    for supplier in suppliers:
        supplier_orders = [o for o in orders if o.supplier_id == supplier.id]
        delivered = [o for o in supplier_orders if o.status == PurchaseOrderStatus.DELIVERED]

        delivery_days = [
            (o.delivered_date - local_day(o.created_at)).days
            for o in delivered
            if o.delivered_date and o.created_at
        ]
        avg_days = _round_half_up(sum(delivery_days) / len(delivery_days)) if delivery_days else 0

        results.append({
            "id": supplier.id,
            "name": supplier.name,
            "total_orders": len(supplier_orders),
            "delivered_orders": len(delivered),
            "avg_delivery_days": avg_days,
            "total_amount": _money(sum(o.total_amount for o in supplier_orders)),
        })
    return results


def revenue_vs_inventory_cost(
    sales: Iterable[Sale],
    medicines: Iterable[Medicine],
    date_from: date,
    date_to: date
) -> List[Dict[str, Any]]:
    """Daily sales next to a flat daily share of the current catalog value.

    The inventory cost is today's catalog value spread evenly over the window,
    not a historical reconstruction.
    """
    days = _days_in_range(date_from, date_to)
    revenue = {day: 0.0 for day in days}
    for sale in sales:
        day = local_day(sale.created_at)
        if day in revenue:
            revenue[day] += sale.total_amount

    catalog_value = sum(m.quantity * m.unit_price for m in medicines)
    daily_cost = _money(catalog_value / len(days))

    return [
        {"date": day.isoformat(), "revenue": _money(revenue[day]), "inventory_cost": daily_cost}
        for day in days
    ]


def dashboard_stats(medicines: Sequence[Medicine], todays_sales: Iterable[Sale], today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    horizon = today + timedelta(days=get_inventory_rules().EXPIRY_WARNING_DAYS)

    return {
        "total_medicines": len(medicines),
        "total_stock": sum(m.quantity for m in medicines),
        "low_stock_items": sum(1 for m in medicines if 0 < m.quantity < m.min_stock_level),
        "expiring_soon_items": sum(1 for m in medicines if today < m.expiry_date <= horizon),
        "expired_items": sum(1 for m in medicines if m.expiry_date <= today),
        "todays_sales": _money(sum(s.total_amount for s in todays_sales)),
        "total_value": _money(sum(m.quantity * m.unit_price for m in medicines)),
    }


# ==================== LOADERS ====================

def _load_movements(session: Session, date_from: date, date_to: date) -> List[StockMovement]:
    start, end = day_window(date_from, date_to)
    return session.exec(
        select(StockMovement)
        .where(StockMovement.created_at >= start, StockMovement.created_at <= end)
        .order_by(StockMovement.created_at, StockMovement.id)
    ).all()


def _load_medicines(session: Session) -> List[Medicine]:
    return session.exec(select(Medicine).order_by(Medicine.id)).all()


def _load_sales(session: Session, date_from: date, date_to: date) -> List[Sale]:
    start, end = day_window(date_from, date_to)
    return session.exec(
        select(Sale).where(Sale.created_at >= start, Sale.created_at <= end).order_by(Sale.id)
    ).all()


def load_stock_trends(session: Session, date_from: date, date_to: date) -> List[Dict[str, Any]]:
    return stock_trends(_load_movements(session, date_from, date_to), date_from, date_to)


def load_category_distribution(session: Session) -> List[Dict[str, Any]]:
    return category_distribution(_load_medicines(session))


def load_moving_items(session: Session, date_from: date, date_to: date) -> List[Dict[str, Any]]:
    return moving_items(_load_movements(session, date_from, date_to), _load_medicines(session))


def load_expiry_loss(session: Session, today: Optional[date] = None) -> List[Dict[str, Any]]:
    return expiry_loss(_load_medicines(session), today)


def load_supplier_performance(session: Session) -> List[Dict[str, Any]]:
    suppliers = session.exec(select(Supplier).order_by(Supplier.id)).all()
    orders = session.exec(select(PurchaseOrder).order_by(PurchaseOrder.id)).all()
    return supplier_performance(suppliers, orders)


def load_revenue(session: Session, date_from: date, date_to: date) -> List[Dict[str, Any]]:
    return revenue_vs_inventory_cost(
        _load_sales(session, date_from, date_to), _load_medicines(session), date_from, date_to
    )


def load_dashboard_stats(session: Session, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    return dashboard_stats(_load_medicines(session), _load_sales(session, today, today), today)

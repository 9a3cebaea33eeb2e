"""Counter sales backed by stock-out movements"""
import logging
from datetime import date
from typing import List, Optional

from sqlmodel import Session, select

from models import Medicine, MovementType, Sale
from services.stock_service import StockOperationResult, apply_stock_change, run_stock_transaction
from validators.business_rules import get_inventory_rules
from utils.clock import day_window

logger = logging.getLogger(__name__)


def record_sale(
    session: Session,
    medicine_id: int,
    quantity: int,
    customer_name: Optional[str] = None,
    sold_by: Optional[int] = None
) -> StockOperationResult:
    """Sell units of a medicine at its current unit price.

    The stock-out, the ledger entry and the sale row commit together.
    """
    def stage() -> StockOperationResult:
        movement = apply_stock_change(
            session, medicine_id, quantity, MovementType.STOCK_OUT,
            get_inventory_rules().SALE_REASON, performed_by=sold_by
        )
        medicine = session.get(Medicine, medicine_id)
        sale = Sale(
            medicine_id=medicine.id,
            quantity=quantity,
            unit_price=medicine.unit_price,
            total_amount=round(quantity * medicine.unit_price, 2),
            customer_name=customer_name,
            sold_by=sold_by,
        )
        session.add(sale)
        return StockOperationResult(
            success=True,
            message=f"Sold {quantity} units of {medicine.name}.",
            medicine=medicine,
            movement=movement,
            sale=sale,
        )

    result = run_stock_transaction(session, stage)
    if result.success:
        logger.info(f"Sale {result.sale.id}: {quantity} x medicine {medicine_id} = {result.sale.total_amount}")
    return result


def list_sales(session: Session, date_from: date, date_to: date) -> List[Sale]:
    """Sales recorded between the start of `date_from` and the end of `date_to`"""
    start, end = day_window(date_from, date_to)
    return session.exec(
        select(Sale)
        .where(Sale.created_at >= start)
        .where(Sale.created_at <= end)
        .order_by(Sale.created_at, Sale.id)
    ).all()

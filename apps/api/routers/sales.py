"""Counter sales"""
from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from typing import List, Optional
from datetime import date

from database import get_session
from models import User
from schemas import SaleCreate, SaleResponse, SaleRecordResponse, MedicineResponse
from dependencies import require_route
from services import sale_service
from services.inventory_errors import InventoryError, http_error_for
from utils.cache import AnalyticsCache
from validators.stock_validator import resolve_date_range

router = APIRouter(prefix="/api/sales", tags=["Sales"])


@router.post("", response_model=SaleRecordResponse, status_code=status.HTTP_201_CREATED)
def record_sale(
    sale_data: SaleCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("stock-out"))
):
    """Sell units at the medicine's current price. Stock leaves through a normal stock-out."""
    result = sale_service.record_sale(
        session,
        sale_data.medicine_id,
        sale_data.quantity,
        customer_name=sale_data.customer_name,
        sold_by=current_user.id,
    )
    if not result.success:
        raise http_error_for(result.error)

    AnalyticsCache.invalidate_all()
    return SaleRecordResponse(
        success=True,
        message=result.message,
        sale=SaleResponse.model_validate(result.sale),
        medicine=MedicineResponse.model_validate(result.medicine),
    )


@router.get("", response_model=List[SaleResponse])
def list_sales(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("reports"))
):
    try:
        date_from, date_to = resolve_date_range(date_from, date_to)
    except InventoryError as e:
        raise http_error_for(e)
    return sale_service.list_sales(session, date_from, date_to)

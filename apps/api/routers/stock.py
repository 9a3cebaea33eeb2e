"""Stock-in / stock-out endpoints and the movement ledger"""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import List, Optional
from datetime import date

from database import get_session
from models import MovementType, User
from schemas import (
    StockOperationRequest, BarcodeStockRequest, StockOperationResponse, MedicineResponse, MovementResponse
)
from dependencies import ensure_route_access, get_current_user, require_route
from services import medicine_service, stock_service
from services.inventory_errors import InventoryError, http_error_for
from services.stock_service import StockOperationResult
from utils.cache import AnalyticsCache

router = APIRouter(prefix="/api/stock", tags=["Stock"])

ROUTE_FOR_DIRECTION = {
    MovementType.STOCK_IN: "stock-in",
    MovementType.STOCK_OUT: "stock-out",
}


def _respond(result: StockOperationResult) -> StockOperationResponse:
    if not result.success:
        raise http_error_for(result.error)

    AnalyticsCache.invalidate_all()
    return StockOperationResponse(
        success=True,
        message=result.message,
        medicine=MedicineResponse.model_validate(result.medicine),
        movement=MovementResponse.model_validate(result.movement),
    )


@router.post("/in", response_model=StockOperationResponse)
def stock_in(
    request_data: StockOperationRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("stock-in"))
):
    """Receive units of a medicine. A supplied batch number replaces the current one."""
    result = stock_service.stock_in(
        session,
        request_data.medicine_id,
        request_data.quantity,
        request_data.reason,
        batch_number=request_data.batch_number,
        performed_by=current_user.id,
    )
    return _respond(result)


@router.post("/out", response_model=StockOperationResponse)
def stock_out(
    request_data: StockOperationRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("stock-out"))
):
    result = stock_service.stock_out(
        session,
        request_data.medicine_id,
        request_data.quantity,
        request_data.reason,
        batch_number=request_data.batch_number,
        performed_by=current_user.id,
    )
    return _respond(result)


@router.post("/scan", response_model=StockOperationResponse)
def scan_stock(
    request_data: BarcodeStockRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    """Quick stock movement by barcode"""
    ensure_route_access(current_user, ROUTE_FOR_DIRECTION[request_data.type])

    try:
        medicine = medicine_service.get_medicine_by_barcode(session, request_data.barcode)
    except InventoryError as e:
        raise http_error_for(e)

    result = stock_service.perform_stock_operation(
        session,
        medicine.id,
        request_data.quantity,
        request_data.type,
        request_data.reason or "Barcode scan",
        batch_number=request_data.batch_number,
        performed_by=current_user.id,
    )
    return _respond(result)


@router.get("/movements", response_model=List[MovementResponse])
def list_movements(
    medicine_id: Optional[int] = None,
    movement_type: Optional[MovementType] = Query(None, alias="type"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: Optional[int] = Query(None),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("reports"))
):
    """Recent stock movements, newest first"""
    try:
        return stock_service.list_movements(
            session,
            medicine_id=medicine_id,
            movement_type=movement_type,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
        )
    except InventoryError as e:
        raise http_error_for(e)

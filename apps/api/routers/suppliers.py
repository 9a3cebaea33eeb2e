"""Suppliers and purchase orders"""
from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from typing import List, Optional

from database import get_session
from models import PurchaseOrderStatus, SupplierStatus, User
from schemas import (
    SupplierCreate, SupplierUpdate, SupplierResponse,
    PurchaseOrderCreate, PurchaseOrderStatusUpdate, PurchaseOrderResponse
)
from dependencies import require_route
from services import supplier_service
from services.inventory_errors import InventoryError, http_error_for
from utils.cache import AnalyticsCache

router = APIRouter(prefix="/api/suppliers", tags=["Suppliers"])


# ==================== PURCHASE ORDERS ====================

@router.get("/purchase-orders", response_model=List[PurchaseOrderResponse])
def list_purchase_orders(
    supplier_id: Optional[int] = None,
    order_status: Optional[PurchaseOrderStatus] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("suppliers"))
):
    return supplier_service.list_purchase_orders(session, supplier_id=supplier_id, status=order_status)


@router.post("/purchase-orders", response_model=PurchaseOrderResponse, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    order_data: PurchaseOrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("suppliers"))
):
    try:
        order = supplier_service.create_purchase_order(
            session,
            order_data.supplier_id,
            [item.model_dump() for item in order_data.items],
            expected_date=order_data.expected_date,
            notes=order_data.notes,
            created_by=current_user.id,
        )
    except InventoryError as e:
        raise http_error_for(e)

    AnalyticsCache.invalidate_all()
    return order


@router.patch("/purchase-orders/{order_id}/status", response_model=PurchaseOrderResponse)
def update_purchase_order_status(
    order_id: int,
    status_data: PurchaseOrderStatusUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("suppliers"))
):
    """Move an order along; delivered orders get today's date unless one is given"""
    try:
        order = supplier_service.update_purchase_order_status(
            session, order_id, status_data.status, status_data.delivered_date
        )
    except InventoryError as e:
        raise http_error_for(e)

    AnalyticsCache.invalidate_all()
    return order


# ==================== SUPPLIERS ====================

@router.get("", response_model=List[SupplierResponse])
def list_suppliers(
    supplier_status: Optional[SupplierStatus] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("suppliers"))
):
    return supplier_service.list_suppliers(session, supplier_status)


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(
    supplier_data: SupplierCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("suppliers"))
):
    try:
        supplier = supplier_service.create_supplier(session, supplier_data.model_dump())
    except InventoryError as e:
        raise http_error_for(e)

    AnalyticsCache.invalidate_all()
    return supplier


@router.get("/{supplier_id}", response_model=SupplierResponse)
def get_supplier(
    supplier_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("suppliers"))
):
    try:
        return supplier_service.get_supplier(session, supplier_id)
    except InventoryError as e:
        raise http_error_for(e)


@router.put("/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: int,
    supplier_data: SupplierUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("suppliers"))
):
    try:
        supplier = supplier_service.update_supplier(
            session, supplier_id, supplier_data.model_dump(exclude_unset=True)
        )
    except InventoryError as e:
        raise http_error_for(e)

    AnalyticsCache.invalidate_all()
    return supplier


@router.delete("/{supplier_id}", response_model=SupplierResponse)
def deactivate_supplier(
    supplier_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("suppliers"))
):
    """Suppliers are never deleted; their order history stays attached"""
    try:
        supplier = supplier_service.update_supplier(session, supplier_id, {"status": SupplierStatus.INACTIVE})
    except InventoryError as e:
        raise http_error_for(e)

    AnalyticsCache.invalidate_all()
    return supplier

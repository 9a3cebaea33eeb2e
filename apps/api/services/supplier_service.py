"""Suppliers and purchase orders"""
import logging
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from models import Medicine, PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus, Supplier, SupplierStatus
from services.inventory_errors import InvalidInputError, NotFoundError, PersistenceError
from validators.stock_validator import validate_non_negative, validate_stock_quantity
from utils.clock import utc_now

logger = logging.getLogger(__name__)


def _commit(session: Session, what: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Saving {what} failed: {type(e).__name__}: {e}", exc_info=True)
        raise PersistenceError(f"Failed to save {what}")


def generate_order_number() -> str:
    return f"PO-{date.today().strftime('%Y%m%d')}-{uuid.uuid4().hex[:6].upper()}"


def get_supplier(session: Session, supplier_id: int) -> Supplier:
    supplier = session.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError("Supplier", supplier_id)
    return supplier


def list_suppliers(session: Session, status: Optional[SupplierStatus] = None) -> List[Supplier]:
    query = select(Supplier)
    if status:
        query = query.where(Supplier.status == status)
    return session.exec(query.order_by(Supplier.name, Supplier.id)).all()


def create_supplier(session: Session, data: dict) -> Supplier:
    supplier = Supplier(**data)
    session.add(supplier)
    _commit(session, "supplier")
    session.refresh(supplier)
    return supplier


def update_supplier(session: Session, supplier_id: int, changes: dict) -> Supplier:
    supplier = get_supplier(session, supplier_id)
    for key, value in changes.items():
        setattr(supplier, key, value)
    supplier.updated_at = utc_now()
    session.add(supplier)
    _commit(session, "supplier")
    session.refresh(supplier)
    return supplier


def create_purchase_order(
    session: Session,
    supplier_id: int,
    items: List[dict],
    expected_date: Optional[date] = None,
    notes: Optional[str] = None,
    created_by: Optional[int] = None
) -> PurchaseOrder:
    supplier = get_supplier(session, supplier_id)
    if supplier.status != SupplierStatus.ACTIVE:
        raise InvalidInputError(f"Supplier {supplier.name} is inactive")
    if not items:
        raise InvalidInputError("A purchase order needs at least one item")

    order = PurchaseOrder(
        order_number=generate_order_number(),
        supplier_id=supplier.id,
        expected_date=expected_date,
        notes=notes,
        created_by=created_by,
    )

    total = 0.0
    for item in items:
        quantity = validate_stock_quantity(item["quantity"])
        unit_price = item.get("unit_price") or 0
        validate_non_negative(unit_price, "Unit price")

        medicine_name = item.get("medicine_name")
        medicine_id = item.get("medicine_id")
        if medicine_id is not None:
            medicine = session.get(Medicine, medicine_id)
            if medicine is None:
                raise NotFoundError("Medicine", medicine_id)
            medicine_name = medicine_name or medicine.name
        if not medicine_name:
            raise InvalidInputError("Each item needs a medicine or a medicine name")

        subtotal = round(quantity * unit_price, 2)
        total += subtotal
        order.items.append(PurchaseOrderItem(
            medicine_id=medicine_id,
            medicine_name=medicine_name,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=subtotal,
        ))

    order.total_amount = round(total, 2)
    session.add(order)
    _commit(session, "purchase order")
    session.refresh(order)
    logger.info(f"Purchase order {order.order_number} created for supplier {supplier.id}: {order.total_amount}")
    return order


def list_purchase_orders(
    session: Session,
    supplier_id: Optional[int] = None,
    status: Optional[PurchaseOrderStatus] = None
) -> List[PurchaseOrder]:
    query = select(PurchaseOrder)
    if supplier_id is not None:
        query = query.where(PurchaseOrder.supplier_id == supplier_id)
    if status:
        query = query.where(PurchaseOrder.status == status)
    return session.exec(query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())).all()


def update_purchase_order_status(
    session: Session,
    order_id: int,
    status: PurchaseOrderStatus,
    delivered_date: Optional[date] = None
) -> PurchaseOrder:
    order = session.get(PurchaseOrder, order_id)
    if order is None:
        raise NotFoundError("Purchase order", order_id)
    if order.status in (PurchaseOrderStatus.DELIVERED, PurchaseOrderStatus.CANCELLED) and order.status != status:
        raise InvalidInputError(f"Purchase order {order.order_number} is already {order.status.value}")

    order.status = status
    if status == PurchaseOrderStatus.DELIVERED:
        order.delivered_date = delivered_date or order.delivered_date or date.today()
    order.updated_at = utc_now()

    session.add(order)
    _commit(session, "purchase order")
    session.refresh(order)
    return order

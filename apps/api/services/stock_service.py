"""
Stock Service - stock-in / stock-out operations

A stock operation changes a medicine's quantity, re-derives its status and
appends one StockMovement to the ledger. Both writes go out in a single
commit so the ledger always matches the stored quantity.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from models import Medicine, MovementType, Sale, StockMovement
from services.inventory_errors import (
    InsufficientStockError,
    InvalidInputError,
    InventoryError,
    MedicineNotFoundError,
    PersistenceError,
)
from services.inventory_status import apply_status
from validators.business_rules import get_inventory_rules
from validators.stock_validator import validate_stock_quantity
from utils.clock import end_of_day, start_of_day, utc_now

logger = logging.getLogger(__name__)


@dataclass
class StockOperationResult:
    """Outcome of a stock operation. Failures carry the error kind and a message."""
    success: bool
    message: str
    error: Optional[InventoryError] = None
    medicine: Optional[Medicine] = None
    movement: Optional[StockMovement] = None
    sale: Optional[Sale] = None

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error else None


def apply_stock_change(
    session: Session,
    medicine_id: int,
    quantity: int,
    direction: MovementType,
    reason: Optional[str],
    batch_number: Optional[str] = None,
    performed_by: Optional[int] = None,
    today: Optional[date] = None
) -> StockMovement:
    """Validate and stage a stock change on the session without committing.

    Raises InventoryError subclasses before anything is staged.
    """
    validate_stock_quantity(quantity)
    try:
        direction = MovementType(direction)
    except ValueError:
        raise InvalidInputError(f"Unknown stock direction: {direction}")

    medicine = session.get(Medicine, medicine_id)
    if medicine is None:
        raise MedicineNotFoundError(medicine_id)

    if direction == MovementType.STOCK_OUT and quantity > medicine.quantity:
        raise InsufficientStockError(requested=quantity, available=medicine.quantity)

    if direction == MovementType.STOCK_IN:
        medicine.quantity = medicine.quantity + quantity
        if batch_number:
            medicine.batch_number = batch_number
    else:
        medicine.quantity = medicine.quantity - quantity

    apply_status(medicine, today)
    medicine.updated_at = utc_now()

    movement = StockMovement(
        medicine_id=medicine.id,
        type=direction,
        quantity=quantity,
        batch_number=batch_number or medicine.batch_number,
        reason=reason,
        performed_by=performed_by,
    )
    session.add(medicine)
    session.add(movement)
    return movement


def run_stock_transaction(session: Session, stage: Callable[[], StockOperationResult]) -> StockOperationResult:
    """Run `stage`, then commit. Any failure rolls everything back.

    `stage` stages writes on the session and returns the success result.
    """
    try:
        result = stage()
        session.commit()
    except InventoryError as e:
        session.rollback()
        logger.info(f"Stock operation rejected ({e.kind}): {e.message}")
        return StockOperationResult(success=False, message=e.message, error=e)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Stock operation failed to persist: {type(e).__name__}: {e}", exc_info=True)
        error = PersistenceError()
        return StockOperationResult(success=False, message=error.message, error=error)

    for row in (result.medicine, result.movement, result.sale):
        if row is not None:
            session.refresh(row)
    return result


def perform_stock_operation(
    session: Session,
    medicine_id: int,
    quantity: int,
    direction: MovementType,
    reason: Optional[str],
    batch_number: Optional[str] = None,
    performed_by: Optional[int] = None,
    today: Optional[date] = None
) -> StockOperationResult:
    """Move stock in or out of a medicine and record it in the ledger.

    Never raises for domain or persistence failures; inspect `result.success`.
    """
    def stage() -> StockOperationResult:
        movement = apply_stock_change(
            session, medicine_id, quantity, direction, reason,
            batch_number=batch_number, performed_by=performed_by, today=today
        )
        medicine = session.get(Medicine, medicine_id)
        verb = "added" if movement.type == MovementType.STOCK_IN else "removed"
        return StockOperationResult(
            success=True,
            message=f"Successfully {verb} {quantity} units of {medicine.name}.",
            medicine=medicine,
            movement=movement,
        )

    result = run_stock_transaction(session, stage)
    if result.success:
        logger.info(
            f"{result.movement.type.value} of {quantity} units for medicine {medicine_id} "
            f"by user {performed_by}; quantity now {result.medicine.quantity} ({result.medicine.status.value})"
        )
    return result


def stock_in(session: Session, medicine_id: int, quantity: int, reason: Optional[str],
             batch_number: Optional[str] = None, performed_by: Optional[int] = None) -> StockOperationResult:
    return perform_stock_operation(
        session, medicine_id, quantity, MovementType.STOCK_IN, reason,
        batch_number=batch_number, performed_by=performed_by
    )


def stock_out(session: Session, medicine_id: int, quantity: int, reason: Optional[str],
              batch_number: Optional[str] = None, performed_by: Optional[int] = None) -> StockOperationResult:
    return perform_stock_operation(
        session, medicine_id, quantity, MovementType.STOCK_OUT, reason,
        batch_number=batch_number, performed_by=performed_by
    )


def list_movements(
    session: Session,
    medicine_id: Optional[int] = None,
    movement_type: Optional[MovementType] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: Optional[int] = None
) -> List[StockMovement]:
    """Ledger entries, newest first"""
    rules = get_inventory_rules()
    if limit is None:
        limit = rules.DEFAULT_MOVEMENT_LIMIT
    if limit < 1 or limit > rules.MAX_MOVEMENT_LIMIT:
        raise InvalidInputError(f"Limit must be between 1 and {rules.MAX_MOVEMENT_LIMIT}")
    if date_from and date_to and date_from > date_to:
        raise InvalidInputError("Start date must be on or before end date")

    query = select(StockMovement)
    if medicine_id is not None:
        query = query.where(StockMovement.medicine_id == medicine_id)
    if movement_type:
        query = query.where(StockMovement.type == movement_type)
    if date_from:
        query = query.where(StockMovement.created_at >= start_of_day(date_from))
    if date_to:
        query = query.where(StockMovement.created_at <= end_of_day(date_to))

    query = query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).limit(limit)
    return list(session.exec(query).all())

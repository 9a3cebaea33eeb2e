"""
Medicine catalog service: listing, CRUD and barcode lookup.

Every write path re-derives `status` through `apply_status`; clients can
never set it directly.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select, func, or_

from models import Medicine, MedicineStatus
from services.inventory_errors import InvalidInputError, MedicineNotFoundError, NotFoundError, PersistenceError
from services.inventory_status import apply_status
from validators.business_rules import get_inventory_rules
from validators.stock_validator import validate_non_negative, validate_pagination
from utils.clock import utc_now

logger = logging.getLogger(__name__)

ALL = "all"

SORTABLE_FIELDS = {
    "name": Medicine.name,
    "generic_name": Medicine.generic_name,
    "category": Medicine.category,
    "manufacturer": Medicine.manufacturer,
    "batch_number": Medicine.batch_number,
    "quantity": Medicine.quantity,
    "min_stock_level": Medicine.min_stock_level,
    "unit_price": Medicine.unit_price,
    "expiry_date": Medicine.expiry_date,
    "location": Medicine.location,
    "status": Medicine.status,
    "created_at": Medicine.created_at,
    "updated_at": Medicine.updated_at,
}

# columns that can be changed but never cleared
REQUIRED_FIELDS = ("name", "category", "batch_number", "quantity", "min_stock_level", "unit_price", "expiry_date")


@dataclass
class MedicinePage:
    items: List[Medicine]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0


def like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _parse_status(value: str) -> MedicineStatus:
    try:
        return MedicineStatus(value)
    except ValueError:
        raise InvalidInputError(f"Unknown status filter: {value}")


def list_medicines(
    session: Session,
    page: int = 1,
    page_size: Optional[int] = None,
    sort_field: str = "name",
    sort_order: str = "asc",
    search_term: Optional[str] = None,
    category_filter: Optional[str] = ALL,
    status_filter: Optional[str] = ALL
) -> MedicinePage:
    """Filtered, sorted, offset-paginated medicines plus the unpaginated count"""
    if page_size is None:
        page_size = get_inventory_rules().DEFAULT_PAGE_SIZE
    validate_pagination(page, page_size)

    column = SORTABLE_FIELDS.get(sort_field)
    if column is None:
        raise InvalidInputError(f"Cannot sort by {sort_field}")
    if sort_order not in ("asc", "desc"):
        raise InvalidInputError("Sort order must be 'asc' or 'desc'")

    conditions = []
    if search_term:
        pattern = like_pattern(search_term)
        conditions.append(
            or_(
                Medicine.name.ilike(pattern, escape="\\"),
                Medicine.generic_name.ilike(pattern, escape="\\"),
                Medicine.batch_number.ilike(pattern, escape="\\"),
            )
        )
    if category_filter and category_filter != ALL:
        conditions.append(Medicine.category == category_filter)
    if status_filter and status_filter != ALL:
        conditions.append(Medicine.status == _parse_status(status_filter))

    count_query = select(func.count(Medicine.id))
    query = select(Medicine)
    for condition in conditions:
        count_query = count_query.where(condition)
        query = query.where(condition)

    total_count = session.exec(count_query).one()

    ordering = column.asc() if sort_order == "asc" else column.desc()
    # id as tie-breaker keeps page boundaries stable
    query = query.order_by(ordering, Medicine.id).offset((page - 1) * page_size).limit(page_size)
    items = session.exec(query).all()

    return MedicinePage(items=list(items), total_count=total_count, page=page, page_size=page_size)


def get_medicine(session: Session, medicine_id: int) -> Medicine:
    medicine = session.get(Medicine, medicine_id)
    if medicine is None:
        raise MedicineNotFoundError(medicine_id)
    return medicine


def get_medicine_by_barcode(session: Session, barcode: str) -> Medicine:
    if not barcode or not barcode.strip():
        raise InvalidInputError("Barcode is required")
    medicine = session.exec(select(Medicine).where(Medicine.barcode == barcode.strip())).first()
    if medicine is None:
        raise NotFoundError(f"Medicine with barcode {barcode.strip()}")
    return medicine


def _ensure_barcode_free(session: Session, barcode: Optional[str], medicine_id: Optional[int] = None) -> None:
    if not barcode:
        return
    query = select(Medicine).where(Medicine.barcode == barcode)
    if medicine_id is not None:
        query = query.where(Medicine.id != medicine_id)
    if session.exec(query).first():
        raise InvalidInputError(f"Barcode {barcode} is already assigned to another medicine")


def _commit(session: Session, action: str) -> None:
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Medicine {action} violated a constraint: {e.orig}")
        raise InvalidInputError(f"Medicine could not be {action}d: conflicting data")
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Medicine {action} failed: {type(e).__name__}: {e}", exc_info=True)
        raise PersistenceError(f"Failed to {action} medicine")


def create_medicine(session: Session, data: dict, today: Optional[date] = None) -> Medicine:
    validate_non_negative(data.get("quantity"), "Quantity")
    validate_non_negative(data.get("min_stock_level"), "Minimum stock level")
    validate_non_negative(data.get("unit_price"), "Unit price")
    data = {key: value for key, value in data.items() if key != "status"}
    data["barcode"] = data.get("barcode") or None
    _ensure_barcode_free(session, data.get("barcode"))

    medicine = Medicine(**data)
    apply_status(medicine, today)

    session.add(medicine)
    _commit(session, "create")
    session.refresh(medicine)
    logger.info(f"Medicine {medicine.id} '{medicine.name}' created with status {medicine.status.value}")
    return medicine


def update_medicine(session: Session, medicine_id: int, changes: dict, today: Optional[date] = None) -> Medicine:
    medicine = get_medicine(session, medicine_id)

    cleared = [field for field in REQUIRED_FIELDS if field in changes and changes[field] is None]
    if cleared:
        raise InvalidInputError(f"A value is required for: {', '.join(cleared)}")
    validate_non_negative(changes.get("quantity"), "Quantity")
    validate_non_negative(changes.get("min_stock_level"), "Minimum stock level")
    validate_non_negative(changes.get("unit_price"), "Unit price")
    if "barcode" in changes:
        changes["barcode"] = changes["barcode"] or None
        _ensure_barcode_free(session, changes["barcode"], medicine_id)

    for key, value in changes.items():
        if key in ("id", "status", "created_at", "updated_at"):
            continue
        setattr(medicine, key, value)

    apply_status(medicine, today)
    medicine.updated_at = utc_now()

    session.add(medicine)
    _commit(session, "update")
    session.refresh(medicine)
    return medicine


def delete_medicine(session: Session, medicine_id: int) -> str:
    """Delete a medicine and return its name. Ledger entries are not touched."""
    medicine = get_medicine(session, medicine_id)
    name = medicine.name
    session.delete(medicine)
    _commit(session, "delete")
    logger.info(f"Medicine {medicine_id} '{name}' deleted")
    return name


def refresh_all_statuses(session: Session, today: Optional[date] = None) -> int:
    """Re-derive every stored status as of `today`. Returns how many changed."""
    changed = 0
    for medicine in session.exec(select(Medicine)).all():
        previous = medicine.status
        if apply_status(medicine, today) != previous:
            medicine.updated_at = utc_now()
            session.add(medicine)
            changed += 1
    _commit(session, "update")
    logger.info(f"Status refresh changed {changed} medicines")
    return changed


def list_categories(session: Session) -> List[str]:
    return list(session.exec(select(Medicine.category).distinct().order_by(Medicine.category)).all())

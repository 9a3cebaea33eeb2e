"""
Medicine status derivation.

A medicine's status is denormalized onto the row and must be re-derived by
every write that touches quantity, minimum stock level or expiry date, and at
insert. This module is the only place that decides it.

Rules are ordered and the first match wins, so expiry always outranks stock
level: an expired item with zero units is reported as expired.

    1. expiry date before today          -> expired
    2. expiry within the warning window  -> expiring-soon  (today counts, 0 days)
    3. no units left                     -> out-of-stock
    4. units at or below minimum level   -> low-stock
    5. otherwise                         -> in-stock
"""
import math
from datetime import date, datetime, time
from typing import Optional, Union

from models import MedicineStatus
from services.inventory_errors import InvalidInputError
from validators.business_rules import get_inventory_rules

SECONDS_PER_DAY = 24 * 60 * 60


def days_until_expiry(expiry_date: Union[date, datetime], today: Optional[date] = None) -> int:
    """Whole days from the start of today until expiry, rounded up.

    A date expiring today gives 0, yesterday gives -1. A datetime later
    today also gives 1 because any part of a day counts as a full day.
    """
    today = today or date.today()
    if isinstance(expiry_date, datetime):
        start_of_today = datetime.combine(today, time.min)
        seconds = (expiry_date.replace(tzinfo=None) - start_of_today).total_seconds()
        return math.ceil(seconds / SECONDS_PER_DAY)
    return (expiry_date - today).days


def derive_status(
    quantity: int,
    min_stock_level: int,
    expiry_date: Union[date, datetime],
    today: Optional[date] = None
) -> MedicineStatus:
    if quantity is None or quantity < 0:
        raise InvalidInputError("Quantity cannot be negative")
    if min_stock_level is None or min_stock_level < 0:
        raise InvalidInputError("Minimum stock level cannot be negative")
    if expiry_date is None:
        raise InvalidInputError("Expiry date is required")

    days_left = days_until_expiry(expiry_date, today)

    if days_left < 0:
        return MedicineStatus.EXPIRED
    if days_left <= get_inventory_rules().EXPIRY_WARNING_DAYS:
        return MedicineStatus.EXPIRING_SOON
    if quantity == 0:
        return MedicineStatus.OUT_OF_STOCK
    if quantity <= min_stock_level:
        return MedicineStatus.LOW_STOCK
    return MedicineStatus.IN_STOCK


def apply_status(medicine, today: Optional[date] = None) -> MedicineStatus:
    """Recompute and store the status of a medicine row in place"""
    medicine.status = derive_status(
        medicine.quantity,
        medicine.min_stock_level,
        medicine.expiry_date,
        today
    )
    return medicine.status

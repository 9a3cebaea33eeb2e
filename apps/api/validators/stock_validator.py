"""Input validation for stock, listing and analytics operations"""
from datetime import date, timedelta
from typing import Optional, Tuple

from services.inventory_errors import InvalidInputError
from validators.business_rules import get_inventory_rules


def validate_stock_quantity(quantity) -> int:
    """Quantities moved in or out must be positive integers"""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidInputError("Quantity must be a whole number")
    if quantity <= 0:
        raise InvalidInputError("Quantity must be greater than zero")
    return quantity


def validate_non_negative(value, field_name: str) -> None:
    if value is not None and value < 0:
        raise InvalidInputError(f"{field_name} cannot be negative")


def validate_pagination(page: int, page_size: int) -> None:
    rules = get_inventory_rules()

    if page < 1:
        raise InvalidInputError("Page must be 1 or greater")
    if page_size < 1 or page_size > rules.MAX_PAGE_SIZE:
        raise InvalidInputError(f"Page size must be between 1 and {rules.MAX_PAGE_SIZE}")


def resolve_date_range(
    date_from: Optional[date],
    date_to: Optional[date],
    today: Optional[date] = None
) -> Tuple[date, date]:
    """Fill in the default window and validate it.

    The default window ends today and spans DEFAULT_ANALYTICS_DAYS days before it.
    """
    rules = get_inventory_rules()
    today = today or date.today()

    date_to = date_to or today
    date_from = date_from or (date_to - timedelta(days=rules.DEFAULT_ANALYTICS_DAYS))

    if date_from > date_to:
        raise InvalidInputError("Start date must be on or before end date")

    days = (date_to - date_from).days + 1
    if days > rules.MAX_ANALYTICS_DAYS:
        raise InvalidInputError(f"Date range cannot exceed {rules.MAX_ANALYTICS_DAYS} days")

    return date_from, date_to

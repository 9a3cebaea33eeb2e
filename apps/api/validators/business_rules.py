"""Inventory business rule configuration"""
from typing import Any
from pydantic import BaseModel


class InventoryRules(BaseModel):
    """Inventory rules configuration"""
    # Status derivation
    EXPIRY_WARNING_DAYS: int = 30
    DEFAULT_MIN_STOCK_LEVEL: int = 10

    # Medicine listing
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Analytics windows
    DEFAULT_ANALYTICS_DAYS: int = 30
    MAX_ANALYTICS_DAYS: int = 366

    # Stock ledger views
    DEFAULT_MOVEMENT_LIMIT: int = 50
    MAX_MOVEMENT_LIMIT: int = 500

    # Sales
    SALE_REASON: str = "Sale"


# Global instance - can be loaded from database
inventory_rules = InventoryRules()


def get_inventory_rules() -> InventoryRules:
    """Get current inventory rules"""
    return inventory_rules


def update_inventory_rule(key: str, value: Any) -> None:
    """Update an inventory rule"""
    if hasattr(inventory_rules, key):
        setattr(inventory_rules, key, value)
    else:
        raise ValueError(f"Unknown inventory rule: {key}")

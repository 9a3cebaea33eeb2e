"""
Inventory domain errors.

Every failure of an inventory operation is one of four kinds. Services raise
these; the stock operation converts them into a failed result, and routers
translate them to HTTP responses through `http_error_for`.
"""
from fastapi import HTTPException, status


class InventoryError(Exception):
    """Base class for recoverable inventory failures"""
    kind = "inventory_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(InventoryError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id=None):
        message = f"{resource} not found" if resource_id is None else f"{resource} {resource_id} not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class MedicineNotFoundError(NotFoundError):
    def __init__(self, medicine_id=None):
        super().__init__("Medicine", medicine_id)


class InvalidInputError(InventoryError):
    kind = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStockError(InventoryError):
    kind = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, requested: int, available: int):
        super().__init__(f"Cannot remove {requested} units. Only {available} available.")
        self.requested = requested
        self.available = available


class PersistenceError(InventoryError):
    kind = "persistence_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Failed to save inventory changes"):
        super().__init__(message)


def http_error_for(error: InventoryError) -> HTTPException:
    """Map a domain error to the HTTPException a router should raise"""
    if isinstance(error, PersistenceError):
        # Never expose driver errors to clients
        return HTTPException(
            status_code=error.status_code,
            detail="An internal error occurred. Please try again later."
        )
    return HTTPException(status_code=error.status_code, detail=error.message)

from typing import Optional, List
from datetime import datetime, date
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import UniqueConstraint
from enum import Enum

from utils.clock import utc_now


class AppRole(str, Enum):
    ADMIN = "admin"
    PHARMACIST = "pharmacist"
    DOCTOR = "doctor"
    STORE_MANAGER = "store_manager"

class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    # Relationships
    role_assignments: List["UserRoleAssignment"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "selectin"}
    )
    notification_preference: Optional["NotificationPreference"] = Relationship(back_populates="user")

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else self.email

    @property
    def roles(self) -> List[AppRole]:
        return sorted({AppRole(a.role) for a in self.role_assignments}, key=lambda r: r.value)

class UserRoleAssignment(SQLModel, table=True):
    """Roles granted to a user. No rows means the account is pending approval."""
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    role: AppRole
    created_at: datetime = Field(default_factory=utc_now)

    user: User = Relationship(back_populates="role_assignments")

class NotificationPreference(SQLModel, table=True):
    """Per-user alert preferences"""
    __tablename__ = "notification_preferences"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True)
    email_notifications: bool = Field(default=True)
    low_stock_alerts: bool = Field(default=True)
    expiry_alerts: bool = Field(default=True)
    expiry_warning_days: int = Field(default=30, ge=1, le=365)
    created_at: datetime = Field(default_factory=utc_now)

    user: User = Relationship(back_populates="notification_preference")

# ==================== INVENTORY MODELS ====================

class MedicineStatus(str, Enum):
    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring-soon"

class MovementType(str, Enum):
    STOCK_IN = "stock-in"
    STOCK_OUT = "stock-out"

class Medicine(SQLModel, table=True):
    """Stocked medicine. `status` is derived, never written by clients."""
    __tablename__ = "medicines"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    generic_name: Optional[str] = None
    category: str = Field(index=True)
    manufacturer: Optional[str] = None
    batch_number: str = Field(index=True)
    quantity: int = Field(default=0, ge=0)
    min_stock_level: int = Field(default=10, ge=0)
    unit_price: float = Field(default=0, ge=0)
    expiry_date: date
    location: Optional[str] = None
    barcode: Optional[str] = Field(default=None, unique=True, index=True)
    status: MedicineStatus = Field(default=MedicineStatus.IN_STOCK, index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

class StockMovement(SQLModel, table=True):
    """Append-only stock ledger entry"""
    __tablename__ = "stock_movements"

    id: Optional[int] = Field(default=None, primary_key=True)
    medicine_id: int = Field(foreign_key="medicines.id", index=True)
    type: MovementType
    quantity: int = Field(gt=0)
    batch_number: Optional[str] = None
    reason: Optional[str] = None
    performed_by: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utc_now, index=True)

class SupplierStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

class PurchaseOrderStatus(str, Enum):
    PENDING = "pending"
    ORDERED = "ordered"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class Supplier(SQLModel, table=True):
    """Pharmacy suppliers"""
    __tablename__ = "suppliers"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    payment_terms: Optional[str] = None  # e.g., "Net 30", "COD"
    status: SupplierStatus = Field(default=SupplierStatus.ACTIVE)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

class PurchaseOrder(SQLModel, table=True):
    """Orders placed with suppliers"""
    __tablename__ = "purchase_orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(unique=True, index=True)
    supplier_id: Optional[int] = Field(default=None, foreign_key="suppliers.id", index=True)
    status: PurchaseOrderStatus = Field(default=PurchaseOrderStatus.PENDING)
    total_amount: float = Field(default=0)
    expected_date: Optional[date] = None
    delivered_date: Optional[date] = None
    notes: Optional[str] = None
    created_by: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    items: List["PurchaseOrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "selectin"}
    )

class PurchaseOrderItem(SQLModel, table=True):
    """Line items of a purchase order"""
    __tablename__ = "purchase_order_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="purchase_orders.id", index=True)
    medicine_id: Optional[int] = Field(default=None, foreign_key="medicines.id")
    medicine_name: str
    quantity: int = Field(gt=0)
    unit_price: float = Field(default=0, ge=0)
    subtotal: float = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now)

    order: PurchaseOrder = Relationship(back_populates="items")

class Sale(SQLModel, table=True):
    """Counter sales. Each sale is backed by a stock-out movement."""
    __tablename__ = "sales"

    id: Optional[int] = Field(default=None, primary_key=True)
    medicine_id: Optional[int] = Field(default=None, foreign_key="medicines.id", index=True)
    quantity: int = Field(gt=0)
    unit_price: float
    total_amount: float
    customer_name: Optional[str] = None
    sold_by: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utc_now, index=True)

class ActivityLog(SQLModel, table=True):
    """User activity tracking for security and monitoring"""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    user_name: str
    user_roles: str = Field(default="", index=True)  # comma separated
    activity_type: str = Field(index=True)  # login, stock_in, medicine_create, etc.
    activity_description: str
    ip_address: Optional[str] = None
    device_type: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now, index=True)

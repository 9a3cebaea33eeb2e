from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field, field_validator
from models import AppRole, MedicineStatus, MovementType, PurchaseOrderStatus, SupplierStatus
from datetime import date, datetime
from validators.password_validator import validate_password

# Request schemas
class UserRegister(BaseModel):
    email: EmailStr
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        validate_password(value)
        return value

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class TokenRefresh(BaseModel):
    refresh_token: str

# Response schemas
class UserResponse(BaseModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool
    roles: List[AppRole] = []
    created_at: datetime

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse

class CurrentUserResponse(BaseModel):
    user: UserResponse
    roles: List[AppRole]
    is_staff: bool
    pending_approval: bool
    permitted_routes: List[str]

class AccessResponse(BaseModel):
    route: str
    decision: str
    allowed: bool

# User administration
class RoleAssignment(BaseModel):
    role: AppRole

class UserActiveUpdate(BaseModel):
    is_active: bool

# Medicine schemas
class MedicineCreate(BaseModel):
    name: str = Field(min_length=1)
    generic_name: Optional[str] = None
    category: str = Field(min_length=1)
    manufacturer: Optional[str] = None
    batch_number: str = Field(min_length=1)
    quantity: int = Field(default=0, ge=0)
    min_stock_level: int = Field(default=10, ge=0)
    unit_price: float = Field(default=0, ge=0)
    expiry_date: date
    location: Optional[str] = None
    barcode: Optional[str] = None

class MedicineUpdate(BaseModel):
    """Partial update. Status is derived, so it is not accepted here."""
    name: Optional[str] = Field(default=None, min_length=1)
    generic_name: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1)
    manufacturer: Optional[str] = None
    batch_number: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[int] = Field(default=None, ge=0)
    min_stock_level: Optional[int] = Field(default=None, ge=0)
    unit_price: Optional[float] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None
    location: Optional[str] = None
    barcode: Optional[str] = None

class MedicineResponse(BaseModel):
    id: int
    name: str
    generic_name: Optional[str] = None
    category: str
    manufacturer: Optional[str] = None
    batch_number: str
    quantity: int
    min_stock_level: int
    unit_price: float
    expiry_date: date
    location: Optional[str] = None
    barcode: Optional[str] = None
    status: MedicineStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class MedicinePageResponse(BaseModel):
    items: List[MedicineResponse]
    total_count: int
    page: int
    page_size: int
    total_pages: int

# Stock schemas
class StockOperationRequest(BaseModel):
    medicine_id: int
    quantity: int
    reason: Optional[str] = None
    batch_number: Optional[str] = None

class BarcodeStockRequest(BaseModel):
    barcode: str
    type: MovementType
    quantity: int = 1
    reason: Optional[str] = None
    batch_number: Optional[str] = None

class MovementResponse(BaseModel):
    id: int
    medicine_id: int
    type: MovementType
    quantity: int
    batch_number: Optional[str] = None
    reason: Optional[str] = None
    performed_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

class StockOperationResponse(BaseModel):
    success: bool
    message: str
    medicine: MedicineResponse
    movement: MovementResponse

# Sale schemas
class SaleCreate(BaseModel):
    medicine_id: int
    quantity: int
    customer_name: Optional[str] = None

class SaleResponse(BaseModel):
    id: int
    medicine_id: Optional[int] = None
    quantity: int
    unit_price: float
    total_amount: float
    customer_name: Optional[str] = None
    sold_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

class SaleRecordResponse(BaseModel):
    success: bool
    message: str
    sale: SaleResponse
    medicine: MedicineResponse

# Supplier schemas
class SupplierCreate(BaseModel):
    name: str = Field(min_length=1)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    payment_terms: Optional[str] = None

class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    payment_terms: Optional[str] = None
    status: Optional[SupplierStatus] = None

class SupplierResponse(BaseModel):
    id: int
    name: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    payment_terms: Optional[str] = None
    status: SupplierStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class PurchaseOrderItemCreate(BaseModel):
    medicine_id: Optional[int] = None
    medicine_name: Optional[str] = None
    quantity: int
    unit_price: float = 0

class PurchaseOrderCreate(BaseModel):
    supplier_id: int
    expected_date: Optional[date] = None
    notes: Optional[str] = None
    items: List[PurchaseOrderItemCreate]

class PurchaseOrderStatusUpdate(BaseModel):
    status: PurchaseOrderStatus
    delivered_date: Optional[date] = None

class PurchaseOrderItemResponse(BaseModel):
    id: int
    medicine_id: Optional[int] = None
    medicine_name: str
    quantity: int
    unit_price: float
    subtotal: float

    class Config:
        from_attributes = True

class PurchaseOrderResponse(BaseModel):
    id: int
    order_number: str
    supplier_id: Optional[int] = None
    status: PurchaseOrderStatus
    total_amount: float
    expected_date: Optional[date] = None
    delivered_date: Optional[date] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    items: List[PurchaseOrderItemResponse] = []

    class Config:
        from_attributes = True

# Alerts
class AlertResponse(BaseModel):
    id: str
    type: str
    severity: str
    title: str
    message: str
    medicine_id: Optional[int] = None
    medicine_name: Optional[str] = None
    is_read: bool = False
    created_at: datetime

# Settings schemas
class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None

class NotificationPreferenceUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    low_stock_alerts: Optional[bool] = None
    expiry_alerts: Optional[bool] = None
    expiry_warning_days: Optional[int] = Field(default=None, ge=1, le=365)

class NotificationPreferenceResponse(BaseModel):
    email_notifications: bool
    low_stock_alerts: bool
    expiry_alerts: bool
    expiry_warning_days: int

    class Config:
        from_attributes = True

# Activity log schemas
class ActivityLogResponse(BaseModel):
    id: int
    user_id: int
    user_name: str
    user_roles: str
    activity_type: str
    activity_description: str
    ip_address: Optional[str] = None
    device_type: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True

class ActivityLogPage(BaseModel):
    logs: List[ActivityLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int

"""Activity logging middleware and utilities"""
import logging
import re
from typing import Callable, Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from starlette.middleware.base import BaseHTTPMiddleware

from models import ActivityLog, User

logger = logging.getLogger(__name__)

WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# (method, path pattern, activity type); first match wins
ACTIVITY_RULES = [
    ("POST", r"^/api/auth/login$", "login"),
    ("POST", r"^/api/auth/logout$", "logout"),
    ("POST", r"^/api/stock/in$", "stock_in"),
    ("POST", r"^/api/stock/out$", "stock_out"),
    ("POST", r"^/api/stock/scan$", "stock_scan"),
    ("POST", r"^/api/medicines/refresh-status$", "medicine_status_refresh"),
    ("POST", r"^/api/medicines$", "medicine_create"),
    ("PUT", r"^/api/medicines/\d+$", "medicine_update"),
    ("PATCH", r"^/api/medicines/\d+$", "medicine_update"),
    ("DELETE", r"^/api/medicines/\d+$", "medicine_delete"),
    ("POST", r"^/api/sales$", "sale_record"),
    ("POST", r"^/api/users/\d+/roles$", "role_assign"),
    ("DELETE", r"^/api/users/\d+/roles/[\w-]+$", "role_revoke"),
    ("PATCH", r"^/api/users/\d+/active$", "user_status_update"),
    ("POST", r"^/api/suppliers/purchase-orders$", "purchase_order_create"),
    ("PATCH", r"^/api/suppliers/purchase-orders/\d+/status$", "purchase_order_update"),
    ("POST", r"^/api/suppliers$", "supplier_create"),
    ("PUT", r"^/api/suppliers/\d+$", "supplier_update"),
    ("DELETE", r"^/api/suppliers/\d+$", "supplier_deactivate"),
    ("PUT", r"^/api/settings/profile$", "profile_update"),
    ("PUT", r"^/api/settings/notifications$", "preferences_update"),
]

DESCRIPTIONS = {
    "login": "User logged in",
    "logout": "User logged out",
    "stock_in": "Recorded stock in",
    "stock_out": "Recorded stock out",
    "stock_scan": "Recorded a barcode stock movement",
    "medicine_status_refresh": "Refreshed medicine statuses",
    "medicine_create": "Added a medicine",
    "medicine_update": "Updated a medicine",
    "medicine_delete": "Deleted a medicine",
    "sale_record": "Recorded a sale",
    "role_assign": "Assigned a role",
    "role_revoke": "Revoked a role",
    "user_status_update": "Changed a user's active status",
    "purchase_order_create": "Created a purchase order",
    "purchase_order_update": "Updated a purchase order status",
    "supplier_create": "Added a supplier",
    "supplier_update": "Updated a supplier",
    "supplier_deactivate": "Deactivated a supplier",
    "profile_update": "Updated profile information",
    "preferences_update": "Updated notification preferences",
}


def remember_actor(request: Request, user: User) -> None:
    """Keep a plain copy of the caller for the middleware.

    The ORM object may be expired or detached by the time the response is
    sent, so only primitive values are stored.
    """
    request.state.actor = {
        "id": user.id,
        "name": user.full_name,
        "roles": ",".join(role.value for role in user.roles),
    }


def determine_activity_type(method: str, path: str) -> Optional[str]:
    if method not in WRITE_METHODS:
        return None
    path = path.rstrip("/") or "/"
    for rule_method, pattern, activity_type in ACTIVITY_RULES:
        if rule_method == method and re.match(pattern, path):
            return activity_type
    return None


def determine_device_type(user_agent: str) -> str:
    user_agent_lower = user_agent.lower()

    if "tablet" in user_agent_lower or "ipad" in user_agent_lower:
        return "tablet"
    elif "mobile" in user_agent_lower or "android" in user_agent_lower or "iphone" in user_agent_lower:
        return "mobile"
    else:
        return "desktop"


class ActivityLoggingMiddleware(BaseHTTPMiddleware):
    """Record successful authenticated write actions in the activity log"""

    def __init__(self, app, db_session_factory: Callable[[], Session]):
        super().__init__(app)
        self.db_session_factory = db_session_factory

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        actor = getattr(request.state, "actor", None)
        if not actor or response.status_code >= 400:
            return response

        activity_type = determine_activity_type(request.method, request.url.path)
        if activity_type:
            self._record(request, actor, activity_type)
        return response

    def _record(self, request: Request, actor: dict, activity_type: str) -> None:
        client_host = request.client.host if request.client else "unknown"
        forwarded_for = request.headers.get("X-Forwarded-For")
        ip_address = forwarded_for.split(",")[0].strip() if forwarded_for else client_host
        user_agent = request.headers.get("User-Agent", "unknown")

        log_entry = ActivityLog(
            user_id=actor["id"],
            user_name=actor["name"],
            user_roles=actor["roles"],
            activity_type=activity_type,
            activity_description=DESCRIPTIONS.get(activity_type, f"{request.method} {request.url.path}"),
            ip_address=ip_address,
            device_type=determine_device_type(user_agent),
            user_agent=user_agent,
        )

        db = self.db_session_factory()
        try:
            db.add(log_entry)
            db.commit()
        except SQLAlchemyError as e:
            # Don't fail the request if logging fails
            db.rollback()
            logger.warning(f"Activity logging failed for {activity_type}: {e}")
        finally:
            db.close()

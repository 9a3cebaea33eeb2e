"""Inventory alerts derived on read from medicine state and user preferences"""
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sqlmodel import Session, select

from models import Medicine, NotificationPreference
from services.inventory_status import days_until_expiry
from validators.business_rules import get_inventory_rules
from utils.clock import utc_now

SEVERITY_ORDER = {"critical": 0, "warning": 1, "info": 2}


def _alert(alert_type: str, severity: str, title: str, message: str, medicine: Medicine) -> Dict[str, Any]:
    return {
        "id": f"{alert_type}-{medicine.id}",
        "type": alert_type,
        "severity": severity,
        "title": title,
        "message": message,
        "medicine_id": medicine.id,
        "medicine_name": medicine.name,
        "is_read": False,
        "created_at": medicine.updated_at or utc_now(),
    }


def build_alerts(
    medicines: Iterable[Medicine],
    preference: Optional[NotificationPreference] = None,
    today: Optional[date] = None
) -> List[Dict[str, Any]]:
    """Expiry and stock alerts, most severe first"""
    today = today or date.today()
    expiry_alerts = preference.expiry_alerts if preference else True
    stock_alerts = preference.low_stock_alerts if preference else True
    warning_days = preference.expiry_warning_days if preference else get_inventory_rules().EXPIRY_WARNING_DAYS

    alerts = []
    for medicine in medicines:
        days_left = days_until_expiry(medicine.expiry_date, today)

        if expiry_alerts:
            if days_left < 0:
                alerts.append(_alert(
                    "expiry", "critical", "Medicine expired",
                    f"{medicine.name} (batch {medicine.batch_number}) expired {-days_left} days ago.",
                    medicine,
                ))
            elif days_left <= warning_days:
                alerts.append(_alert(
                    "expiry", "warning", "Expiring soon",
                    f"{medicine.name} (batch {medicine.batch_number}) expires in {days_left} days.",
                    medicine,
                ))

        if stock_alerts:
            if medicine.quantity == 0:
                alerts.append(_alert(
                    "out-of-stock", "critical", "Out of stock",
                    f"{medicine.name} is out of stock.",
                    medicine,
                ))
            elif medicine.quantity <= medicine.min_stock_level:
                alerts.append(_alert(
                    "low-stock", "warning", "Low stock",
                    f"{medicine.name} has {medicine.quantity} units left (minimum {medicine.min_stock_level}).",
                    medicine,
                ))

    alerts.sort(key=lambda a: (SEVERITY_ORDER[a["severity"]], a["medicine_id"]))
    return alerts


def load_alerts(session: Session, user_id: int, today: Optional[date] = None) -> List[Dict[str, Any]]:
    preference = session.exec(
        select(NotificationPreference).where(NotificationPreference.user_id == user_id)
    ).first()
    medicines = session.exec(select(Medicine).order_by(Medicine.id)).all()
    return build_alerts(medicines, preference, today)

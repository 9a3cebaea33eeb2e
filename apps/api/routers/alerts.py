"""Inventory alerts"""
from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import List, Optional

from database import get_session
from models import User
from schemas import AlertResponse
from dependencies import require_route
from services.alert_service import load_alerts

router = APIRouter(prefix="/api/alerts", tags=["Alerts"])


@router.get("", response_model=List[AlertResponse])
def list_alerts(
    severity: Optional[str] = None,
    alert_type: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("alerts"))
):
    """Expiry and stock alerts for the current user's notification preferences"""
    alerts = load_alerts(session, current_user.id)
    if severity:
        alerts = [a for a in alerts if a["severity"] == severity]
    if alert_type:
        alerts = [a for a in alerts if a["type"] == alert_type]
    return alerts

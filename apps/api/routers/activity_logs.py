"""Admin activity logs"""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select, func, or_, and_
from typing import Optional
from datetime import date, timedelta
import math

from database import get_session
from models import User, ActivityLog
from schemas import ActivityLogPage, ActivityLogResponse
from dependencies import require_admin
from services.medicine_service import like_pattern
from utils.clock import end_of_day, start_of_day, utc_now

router = APIRouter(prefix="/api/admin/activity-logs", tags=["Admin Activity Logs"])


@router.get("", response_model=ActivityLogPage)
def get_activity_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    user_id: Optional[int] = None,
    role: Optional[str] = None,
    activity_type: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    keyword: Optional[str] = None,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Activity logs, newest first, with filtering (Admin only)"""
    conditions = []

    if user_id:
        conditions.append(ActivityLog.user_id == user_id)

    if role:
        # user_roles is a comma separated list; match whole entries only
        conditions.append(("," + ActivityLog.user_roles + ",").like(like_pattern(f",{role},"), escape="\\"))

    if activity_type:
        conditions.append(ActivityLog.activity_type == activity_type)

    if date_from:
        conditions.append(ActivityLog.timestamp >= start_of_day(date_from))

    if date_to:
        conditions.append(ActivityLog.timestamp <= end_of_day(date_to))

    if keyword:
        pattern = like_pattern(keyword)
        conditions.append(
            or_(
                ActivityLog.activity_description.ilike(pattern, escape="\\"),
                ActivityLog.user_name.ilike(pattern, escape="\\"),
                ActivityLog.activity_type.ilike(pattern, escape="\\")
            )
        )

    statement = select(ActivityLog)
    count_statement = select(func.count()).select_from(ActivityLog)
    if conditions:
        statement = statement.where(and_(*conditions))
        count_statement = count_statement.where(and_(*conditions))

    total_count = db.exec(count_statement).one()
    logs = db.exec(
        statement.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    ).all()

    return ActivityLogPage(
        logs=[ActivityLogResponse.model_validate(log) for log in logs],
        total=total_count,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total_count / page_size),
    )


@router.get("/stats")
def get_activity_stats(
    days: int = Query(7, ge=1, le=90),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Activity counts by type over the last `days` days (Admin only)"""
    start_date = utc_now() - timedelta(days=days)

    total_activities = db.exec(
        select(func.count()).select_from(ActivityLog).where(ActivityLog.timestamp >= start_date)
    ).one()

    type_rows = db.exec(
        select(ActivityLog.activity_type, func.count(ActivityLog.id))
        .where(ActivityLog.timestamp >= start_date)
        .group_by(ActivityLog.activity_type)
        .order_by(func.count(ActivityLog.id).desc())
    ).all()

    return {
        "days": days,
        "total_activities": total_activities,
        "activities_by_type": [{"activity_type": row[0], "count": row[1]} for row in type_rows],
    }

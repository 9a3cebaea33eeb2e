"""Profile and notification preference settings"""
from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from database import get_session
from models import NotificationPreference, User
from schemas import ProfileUpdate, UserResponse, NotificationPreferenceUpdate, NotificationPreferenceResponse
from dependencies import require_route
from utils.clock import utc_now

router = APIRouter(prefix="/api/settings", tags=["Settings"])


def _preferences_for(session: Session, user: User) -> NotificationPreference:
    preference = session.exec(
        select(NotificationPreference).where(NotificationPreference.user_id == user.id)
    ).first()
    if preference is None:
        preference = NotificationPreference(user_id=user.id)
        session.add(preference)
        session.commit()
        session.refresh(preference)
    return preference


@router.get("/profile", response_model=UserResponse)
def get_profile(current_user: User = Depends(require_route("settings"))):
    return current_user


@router.put("/profile", response_model=UserResponse)
def update_profile(
    profile_data: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("settings"))
):
    for key, value in profile_data.model_dump(exclude_unset=True).items():
        setattr(current_user, key, value)
    current_user.updated_at = utc_now()

    session.add(current_user)
    session.commit()
    session.refresh(current_user)
    return current_user


@router.get("/notifications", response_model=NotificationPreferenceResponse)
def get_notification_preferences(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("settings"))
):
    return _preferences_for(session, current_user)


@router.put("/notifications", response_model=NotificationPreferenceResponse)
def update_notification_preferences(
    preference_data: NotificationPreferenceUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("settings"))
):
    """Alert toggles and the expiry warning window used for this user's alerts"""
    preference = _preferences_for(session, current_user)
    for key, value in preference_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(preference, key, value)

    session.add(preference)
    session.commit()
    session.refresh(preference)
    return preference

"""User approval and role management (admin)"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
import logging

from database import get_session
from models import AppRole, User, UserRoleAssignment
from schemas import RoleAssignment, UserActiveUpdate, UserResponse
from dependencies import require_route
from utils.clock import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def _get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("", response_model=List[UserResponse])
def list_users(
    pending_only: bool = Query(False, description="Only accounts with no roles yet"),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("users"))
):
    users = session.exec(select(User).order_by(User.created_at, User.id)).all()
    if pending_only:
        users = [u for u in users if not u.roles]
    return users


@router.post("/{user_id}/roles", response_model=UserResponse)
def assign_role(
    user_id: int,
    assignment: RoleAssignment,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("users"))
):
    """Grant a role. The first role granted approves a pending account."""
    user = _get_user(session, user_id)
    if assignment.role in user.roles:
        return user

    user.role_assignments.append(UserRoleAssignment(user_id=user.id, role=assignment.role))
    user.updated_at = utc_now()
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User already has role {assignment.role.value}"
        )
    session.refresh(user)

    logger.info(f"User {current_user.id} granted {assignment.role.value} to user {user.id}")
    return user


@router.delete("/{user_id}/roles/{role}", response_model=UserResponse)
def revoke_role(
    user_id: int,
    role: AppRole,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("users"))
):
    user = _get_user(session, user_id)
    if user.id == current_user.id and role == AppRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot revoke your own admin role"
        )

    assignment: Optional[UserRoleAssignment] = next(
        (a for a in user.role_assignments if AppRole(a.role) == role), None
    )
    if assignment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User does not have role {role.value}"
        )

    user.role_assignments.remove(assignment)
    user.updated_at = utc_now()
    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"User {current_user.id} revoked {role.value} from user {user.id}")
    return user


@router.patch("/{user_id}/active", response_model=UserResponse)
def set_user_active(
    user_id: int,
    update: UserActiveUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_route("users"))
):
    user = _get_user(session, user_id)
    if user.id == current_user.id and not update.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot deactivate your own account"
        )

    user.is_active = update.is_active
    user.updated_at = utc_now()
    session.add(user)
    session.commit()
    session.refresh(user)
    return user

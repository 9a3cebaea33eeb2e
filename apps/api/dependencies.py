from typing import Optional, Sequence
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session
from database import get_session
from models import AppRole, User
from auth import decode_token
from services.access_control import ROUTE_RULES, AccessDecision, access_decision
from middleware.activity_logger import remember_actor

security = HTTPBearer()

PENDING_APPROVAL_DETAIL = "Account pending approval"
ACCESS_DENIED_DETAIL = "Access denied"


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: Session = Depends(get_session)
) -> User:
    """Get current authenticated user"""
    payload = decode_token(credentials.credentials)

    if not payload or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials"
        )

    user = session.get(User, int(payload.get("sub")))

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    # Store user in request state for activity logging middleware
    remember_actor(request, user)
    request.state.token_payload = payload

    return user


def _enforce(decision: AccessDecision) -> None:
    if decision == AccessDecision.PENDING_APPROVAL:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=PENDING_APPROVAL_DETAIL)
    if decision == AccessDecision.DENIED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ACCESS_DENIED_DETAIL)


def require_roles(roles: Optional[Sequence[AppRole]] = None, require_any: bool = True):
    """Dependency factory for role-based access control.

    With no roles any staff member passes; users without roles are still
    pending approval and get refused.
    """
    required = tuple(roles or ())

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        _enforce(access_decision(current_user.roles, required, require_any))
        return current_user
    return role_checker


def require_route(route: str):
    """Dependency factory applying the access rule registered for a named route"""
    rule = ROUTE_RULES[route]
    return require_roles(rule.required_roles, rule.require_any)


require_admin = require_roles([AppRole.ADMIN])


def ensure_route_access(user: User, route: str) -> None:
    """Inline check for endpoints whose route depends on the request body"""
    rule = ROUTE_RULES[route]
    _enforce(access_decision(user.roles, rule.required_roles, rule.require_any))

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlmodel import Session, select
from database import get_session
from models import User
from schemas import (
    UserRegister, UserLogin, UserResponse, TokenResponse, TokenRefresh, CurrentUserResponse, AccessResponse
)
from auth import verify_password, get_password_hash, create_access_token, create_refresh_token, decode_token
from dependencies import get_current_user
from middleware.activity_logger import remember_actor
from services.access_control import AccessDecision, is_staff, permitted_routes, route_decision
from services.token_blacklist import blacklist_token
from slowapi import Limiter
from slowapi.util import get_remote_address
import logging
import os

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])
limiter = Limiter(
    key_func=get_remote_address,
    enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
)


def _issue_tokens(user: User) -> TokenResponse:
    roles = [role.value for role in user.roles]
    return TokenResponse(
        access_token=create_access_token(data={"sub": str(user.id), "roles": roles}),
        refresh_token=create_refresh_token(data={"sub": str(user.id)}),
        user=UserResponse.model_validate(user)
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
def register(request: Request, user_data: UserRegister, session: Session = Depends(get_session)):
    """Register a new user. New accounts have no roles until an admin approves them."""
    existing_user = session.exec(select(User).where(User.email == user_data.email)).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    new_user = User(
        email=user_data.email,
        password_hash=get_password_hash(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        phone=user_data.phone,
    )
    session.add(new_user)
    session.commit()
    session.refresh(new_user)

    logger.info(f"User {new_user.id} registered, pending approval")
    return _issue_tokens(new_user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
def login(request: Request, credentials: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == credentials.email)).first()
    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    tokens = _issue_tokens(user)
    # No auth dependency ran, so expose the user to the activity logger here
    remember_actor(request, user)
    return tokens


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit("10/minute")
def refresh_token(request: Request, token_data: TokenRefresh, session: Session = Depends(get_session)):
    payload = decode_token(token_data.refresh_token)
    if not payload or payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token"
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
            detail="Account is inactive"
        )

    # Refresh tokens are single use
    blacklist_token(payload.get("jti"), payload.get("exp"))
    return _issue_tokens(user)


@router.post("/logout")
def logout(request: Request, current_user: User = Depends(get_current_user)):
    """Revoke the access token used for this request for the rest of its lifetime"""
    payload = request.state.token_payload
    blacklist_token(payload.get("jti"), payload.get("exp"))
    logger.info(f"User {current_user.id} logged out")
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    roles = current_user.roles
    return CurrentUserResponse(
        user=UserResponse.model_validate(current_user),
        roles=roles,
        is_staff=is_staff(roles),
        pending_approval=not is_staff(roles),
        permitted_routes=permitted_routes(roles),
    )


@router.get("/access/{route}", response_model=AccessResponse)
def check_route_access(route: str, current_user: User = Depends(get_current_user)):
    """Report whether the current user may open a named route"""
    try:
        decision = route_decision(current_user.roles, route)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown route: {route}"
        )
    return AccessResponse(route=route, decision=decision.value, allowed=decision == AccessDecision.GRANTED)

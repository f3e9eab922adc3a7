# marketplace/core/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from marketplace.core.config import Settings
from marketplace.core.errors import Forbidden, Unauthenticated
from marketplace.db.base import get_db
from marketplace.db.models.user import User

logger = logging.getLogger(__name__)

TOKEN_COOKIE_NAME = "token"

bearer_scheme = HTTPBearer(auto_error=False)


def get_config(request: Request) -> Settings:
    return request.app.state.settings


# -------------------------
# Token issuance / decoding
# -------------------------

def create_access_token(user: User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    claims = {"sub": str(user.id), "role": user.role, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict:
    # raises JWTError on bad signature, expiry or malformed input
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    # header wins over cookie
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(TOKEN_COOKIE_NAME) or None


def _resolve_user(token: str, db: Session, settings: Settings) -> User:
    try:
        payload = decode_access_token(token, settings)
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise Unauthenticated()

    user = db.get(User, user_id)
    if user is None:
        raise Unauthenticated("User not found. Please login again.")
    if not user.is_active:
        raise Unauthenticated("Account is deactivated. Please contact support.")
    return user


# -------------------------
# Auth gate dependencies
# -------------------------

def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_config),
) -> User:
    token = extract_token(request, credentials)
    if not token:
        raise Unauthenticated()

    user = _resolve_user(token, db, settings)
    request.state.user = user
    return user


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_config),
) -> Optional[User]:
    token = extract_token(request, credentials)
    if not token:
        return None

    try:
        user = _resolve_user(token, db, settings)
    except Unauthenticated as exc:
        logger.debug("Ignoring invalid token on optional auth: %s", exc.message)
        return None

    request.state.user = user
    return user


def authorize(*allowed_roles: str):
    """Dependency factory: the caller's role must be one of `allowed_roles`."""

    allowed = frozenset(allowed_roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise Forbidden(f"User role '{current_user.role}' is not authorized to access this route")
        return current_user

    return role_checker


def require_role(role: str):
    return authorize(role)


def require_verified(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_verified:
        raise Forbidden("Account verification required. Please verify your account.")
    return current_user

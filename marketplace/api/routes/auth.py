# marketplace/api/routes/auth.py
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from marketplace.core.config import Settings
from marketplace.core.errors import AccountLocked, Unauthenticated, ValidationFailed
from marketplace.core.security import TOKEN_COOKIE_NAME, create_access_token, get_config, get_current_user
from marketplace.db.base import get_db
from marketplace.db.models.user import User
from marketplace.schemas.common import Envelope
from marketplace.schemas.user import AuthData, OtpVerify, UserCreate, UserData, UserLogin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _issue_token(response: Response, user: User, settings: Settings) -> str:
    token = create_access_token(user, settings)
    response.set_cookie(
        TOKEN_COOKIE_NAME,
        token,
        max_age=settings.jwt_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=not settings.is_development,
    )
    return token


@router.post("/register", response_model=Envelope[AuthData], status_code=status.HTTP_201_CREATED)
def register(
    user: UserCreate,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_config),
):
    email = user.email.lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise ValidationFailed(
            "Email already registered",
            errors=[{"field": "email", "message": "Email already registered"}],
        )

    new_user = User(
        first_name=user.first_name,
        last_name=user.last_name,
        email=email,
        phone=user.phone,
        role=user.role,
        bio=user.bio,
    )
    new_user.password = user.password
    if user.address is not None:
        new_user.address = user.address.model_dump()
    if user.business_info is not None:
        new_user.business_info = user.business_info.model_dump()

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info("Registered user %s as %s", new_user.id, new_user.role)
    token = _issue_token(response, new_user, settings)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": {"user": new_user, "token": token},
    }


@router.post("/login", response_model=Envelope[AuthData])
def login(
    credentials: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_config),
):
    user = db.query(User).filter(User.email == credentials.email.lower()).first()
    if not user:
        raise Unauthenticated("Invalid credentials")

    if user.is_locked:
        raise AccountLocked()

    if not user.check_password(credentials.password):
        user.register_failed_login(settings.max_login_attempts, settings.lock_duration_minutes)
        db.commit()
        logger.warning("Failed login for user %s (%s attempts)", user.id, user.login_attempts)
        raise Unauthenticated("Invalid credentials")

    if not user.is_active:
        raise Unauthenticated("Account is deactivated. Please contact support.")

    user.register_successful_login()
    db.commit()
    db.refresh(user)

    token = _issue_token(response, user, settings)
    return {"success": True, "message": "Login successful", "data": {"user": user, "token": token}}


# OTP delivery is mocked: the accepted code comes from configuration
@router.post("/otp/verify", response_model=Envelope[AuthData])
def verify_otp(
    payload: OtpVerify,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_config),
):
    if payload.code != settings.mock_otp_code:
        raise Unauthenticated("Invalid OTP code")

    user = db.query(User).filter(User.phone == payload.phone).first()
    if not user or not user.is_active:
        raise Unauthenticated("Invalid OTP code")

    user.register_successful_login()
    db.commit()
    db.refresh(user)

    token = _issue_token(response, user, settings)
    return {"success": True, "message": "Login successful", "data": {"user": user, "token": token}}


@router.get("/me", response_model=Envelope[UserData])
def me(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": {"user": current_user}}


@router.post("/logout", response_model=Envelope, response_model_exclude_none=True)
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE_NAME)
    return {"success": True, "message": "Logged out successfully"}

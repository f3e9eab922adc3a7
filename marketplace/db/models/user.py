# marketplace/db/models/user.py
from datetime import timedelta

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String
from sqlalchemy.orm import relationship

from marketplace.core.hashing import hash_password, verify_password
from marketplace.db.base import Base, utcnow


class UserRole:
    CUSTOMER = "customer"
    SERVICE_PROVIDER = "service_provider"
    ADMIN = "admin"

    ALL = (CUSTOMER, SERVICE_PROVIDER, ADMIN)


def default_address():
    return {"street": None, "city": None, "postal_code": None, "country": "Norway"}


def default_preferences():
    return {
        "language": "en",
        "notifications": {"email": True, "sms": False, "push": True},
    }


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Basic information
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    phone = Column(String, nullable=False, index=True)

    # Role and state
    role = Column(String, nullable=False, default=UserRole.CUSTOMER, index=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Location / provider details
    address = Column(JSON, nullable=True, default=default_address)
    business_info = Column(JSON, nullable=True)

    # Profile
    profile_image = Column(String, nullable=False, default="default-avatar.png")
    cover_image = Column(String, nullable=True)
    bio = Column(String(500), nullable=True)
    preferences = Column(JSON, nullable=True, default=default_preferences)

    # Security
    email_verification_token = Column(String, nullable=True)
    email_verification_expire = Column(DateTime, nullable=True)
    password_reset_token = Column(String, nullable=True)
    password_reset_expire = Column(DateTime, nullable=True)
    last_login = Column(DateTime, nullable=True)
    login_attempts = Column(Integer, nullable=False, default=0)
    lock_until = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    services = relationship(
        "Service",
        back_populates="provider",
        foreign_keys="Service.provider_id",
    )

    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, raw_password: str):
        # every assignment re-hashes
        self.password_hash = hash_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return verify_password(raw_password, self.password_hash)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_service_provider(self) -> bool:
        return self.role == UserRole.SERVICE_PROVIDER

    @property
    def city(self):
        return (self.address or {}).get("city")

    @property
    def business_name(self):
        return (self.business_info or {}).get("business_name")

    @property
    def is_locked(self) -> bool:
        return self.lock_until is not None and self.lock_until > utcnow()

    def register_failed_login(self, max_attempts: int, lock_minutes: int):
        # an expired lock starts a fresh attempt window
        if self.lock_until is not None and not self.is_locked:
            self.login_attempts = 0
            self.lock_until = None

        self.login_attempts = (self.login_attempts or 0) + 1
        if self.login_attempts >= max_attempts:
            self.lock_until = utcnow() + timedelta(minutes=lock_minutes)

    def register_successful_login(self):
        self.login_attempts = 0
        self.lock_until = None
        self.last_login = utcnow()

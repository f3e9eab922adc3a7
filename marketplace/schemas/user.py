# marketplace/schemas/user.py
from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import EmailStr, Field, StringConstraints

from marketplace.schemas.common import CamelModel

PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^\+?[1-9]\d{0,15}$")]


class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = "Norway"


class Insurance(CamelModel):
    has_insurance: Optional[bool] = None
    insurance_provider: Optional[str] = None
    policy_number: Optional[str] = None


class BusinessInfo(CamelModel):
    business_name: Optional[str] = None
    business_license: Optional[str] = None
    tax_number: Optional[str] = None
    years_in_business: Optional[int] = Field(None, ge=0)
    specialties: list[str] = []
    certifications: list[str] = []
    insurance: Optional[Insurance] = None


class NotificationPreferences(CamelModel):
    email: bool = True
    sms: bool = False
    push: bool = True


class Preferences(CamelModel):
    language: Literal["en", "no", "sv"] = "en"
    notifications: NotificationPreferences = NotificationPreferences()


class UserCreate(CamelModel):
    first_name: PersonName
    last_name: PersonName
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: Phone
    # admins are never self-registered
    role: Literal["customer", "service_provider"] = "customer"
    address: Optional[Address] = None
    business_info: Optional[BusinessInfo] = None
    bio: Optional[str] = Field(None, max_length=500)


class UserLogin(CamelModel):
    email: EmailStr
    password: str


class OtpVerify(CamelModel):
    phone: Phone
    code: str


class UserResponse(CamelModel):
    """Public profile: never carries the hash, tokens or lock state."""

    id: int
    first_name: str
    last_name: str
    full_name: str
    email: EmailStr
    phone: str
    role: str
    is_verified: bool
    is_active: bool
    address: Optional[Address] = None
    business_info: Optional[BusinessInfo] = None
    profile_image: Optional[str] = None
    cover_image: Optional[str] = None
    bio: Optional[str] = None
    preferences: Optional[Preferences] = None
    last_login: Optional[datetime] = None
    created_at: datetime


class UserData(CamelModel):
    user: UserResponse


class AuthData(CamelModel):
    user: UserResponse
    token: str

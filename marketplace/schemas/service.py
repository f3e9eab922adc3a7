# marketplace/schemas/service.py

from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import ConfigDict, Field, StringConstraints

from marketplace.db.models.category import CATEGORY_IDS
from marketplace.db.models.service import CURRENCIES, PRICING_TYPES, SERVICE_TYPES, ServiceStatus
from marketplace.schemas.common import CamelModel, Pagination

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=20, max_length=1000)]
ShortDescription = Annotated[str, StringConstraints(strip_whitespace=True, max_length=200)]
CityName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
ClockTime = Annotated[str, StringConstraints(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")]

Category = Literal[CATEGORY_IDS]
PricingType = Literal[PRICING_TYPES]
Currency = Literal[CURRENCIES]
ServiceType = Literal[SERVICE_TYPES]
Status = Literal[ServiceStatus.ALL]


# --- nested blocks (shared by input and output) ---

class AdditionalFee(CamelModel):
    name: str
    amount: float = Field(..., ge=0)
    description: Optional[str] = None


class Pricing(CamelModel):
    type: PricingType
    amount: float = Field(..., ge=0)
    currency: Currency = "NOK"
    additional_fees: list[AdditionalFee] = []


class ServiceArea(CamelModel):
    cities: list[CityName] = Field(..., min_length=1)
    max_distance: Optional[float] = Field(None, ge=0)
    travel_fee: float = Field(0, ge=0)


class DayAvailability(CamelModel):
    start: Optional[ClockTime] = None
    end: Optional[ClockTime] = None
    available: bool = True


class Availability(CamelModel):
    monday: Optional[DayAvailability] = None
    tuesday: Optional[DayAvailability] = None
    wednesday: Optional[DayAvailability] = None
    thursday: Optional[DayAvailability] = None
    friday: Optional[DayAvailability] = None
    saturday: Optional[DayAvailability] = None
    sunday: Optional[DayAvailability] = None


class Image(CamelModel):
    url: str
    caption: Optional[str] = None
    is_primary: bool = False


class Video(CamelModel):
    url: str
    caption: Optional[str] = None
    duration: Optional[float] = None


class Document(CamelModel):
    url: str
    name: Optional[str] = None
    type: Optional[str] = None


class QualityRating(CamelModel):
    average: float
    count: int


# --- requests ---

class ServiceCreate(CamelModel):
    # unknown keys (status, isVerified, counters...) are dropped
    model_config = ConfigDict(extra="ignore")

    title: Title
    description: Description
    short_description: Optional[ShortDescription] = None
    category: Category
    subcategory: Optional[str] = None
    tags: list[str] = []
    service_type: ServiceType = "one_time"
    duration: Optional[int] = Field(None, ge=15)
    availability: Optional[Availability] = None
    pricing: Pricing
    service_area: ServiceArea
    on_site_service: bool = True
    remote_service: bool = False
    images: list[Image] = []
    videos: list[Video] = []
    documents: list[Document] = []


class ServiceUpdate(CamelModel):
    # only the owner-editable fields exist here; anything else is dropped
    model_config = ConfigDict(extra="ignore")

    title: Optional[Title] = None
    description: Optional[Description] = None
    short_description: Optional[ShortDescription] = None
    subcategory: Optional[str] = None
    tags: Optional[list[str]] = None
    duration: Optional[int] = Field(None, ge=15)
    availability: Optional[Availability] = None
    pricing: Optional[Pricing] = None
    service_area: Optional[ServiceArea] = None
    on_site_service: Optional[bool] = None
    remote_service: Optional[bool] = None
    images: Optional[list[Image]] = None
    videos: Optional[list[Video]] = None
    documents: Optional[list[Document]] = None


class RatingCreate(CamelModel):
    rating: int = Field(..., ge=1, le=5, description="Rating 1-5")


# --- responses ---

class ProviderSummary(CamelModel):
    id: int
    first_name: str
    last_name: str
    business_name: Optional[str] = None
    profile_image: Optional[str] = None
    city: Optional[str] = None


class VerifierSummary(CamelModel):
    id: int
    first_name: str
    last_name: str


class ServiceResponse(CamelModel):
    id: int
    provider_id: int
    provider: Optional[ProviderSummary] = None

    title: str
    description: str
    short_description: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    tags: list[str] = []
    service_type: str
    duration: Optional[int] = None
    availability: Optional[Availability] = None

    pricing: Pricing
    service_area: ServiceArea
    on_site_service: bool
    remote_service: bool

    images: list[Image] = []
    videos: list[Video] = []
    documents: list[Document] = []

    quality_rating: QualityRating
    is_verified: bool
    verification_date: Optional[datetime] = None
    verified_by: Optional[VerifierSummary] = None

    status: str
    is_featured: bool
    featured_until: Optional[datetime] = None

    view_count: int
    inquiry_count: int
    booking_count: int

    full_price: float
    is_available: bool

    created_at: datetime
    updated_at: Optional[datetime] = None


class ServiceData(CamelModel):
    service: ServiceResponse


class ServiceListData(CamelModel):
    services: list[ServiceResponse]
    pagination: Pagination


class ProviderServicesData(CamelModel):
    services: list[ServiceResponse]


class CategoryDescriptor(CamelModel):
    id: str
    name: str
    icon: str


class CategoryListData(CamelModel):
    categories: list[CategoryDescriptor]

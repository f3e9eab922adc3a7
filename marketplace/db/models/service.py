# marketplace/db/models/service.py

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship

from marketplace.db.base import Base, utcnow


class ServiceStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING_REVIEW = "pending_review"

    ALL = (ACTIVE, INACTIVE, SUSPENDED, PENDING_REVIEW)


PRICING_TYPES = ("fixed", "hourly", "per_unit", "negotiable")
CURRENCIES = ("NOK", "EUR", "USD")
SERVICE_TYPES = ("one_time", "recurring", "subscription", "consultation")

# fields a provider may change on their own listing
OWNER_EDITABLE_FIELDS = (
    "title", "description", "short_description", "subcategory", "tags",
    "duration", "availability", "pricing", "service_area", "on_site_service",
    "remote_service", "images", "videos", "documents",
)

# edits to these send the listing back to moderation
REVIEW_TRIGGER_FIELDS = ("title", "description", "pricing")


class ServiceCity(Base):
    __tablename__ = "service_area_cities"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)

    service = relationship("Service", back_populates="city_entries")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)

    # Owner
    provider_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Basic details
    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False)
    short_description = Column(String(200), nullable=True)

    category = Column(String, nullable=False, index=True)
    subcategory = Column(String, nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)

    service_type = Column(String, nullable=False, default="one_time")
    duration = Column(Integer, nullable=True)  # minutes
    availability = Column(JSON, nullable=True)

    # Pricing
    pricing_type = Column(String, nullable=False)
    pricing_amount = Column(Float, nullable=False, index=True)
    pricing_currency = Column(String, nullable=False, default="NOK")
    additional_fees = Column(JSON, nullable=False, default=list)

    # Coverage
    max_distance = Column(Float, nullable=True)  # km
    travel_fee = Column(Float, nullable=False, default=0)
    on_site_service = Column(Boolean, nullable=False, default=True)
    remote_service = Column(Boolean, nullable=False, default=False)

    # Media
    images = Column(JSON, nullable=False, default=list)
    videos = Column(JSON, nullable=False, default=list)
    documents = Column(JSON, nullable=False, default=list)

    # Quality and verification
    rating_average = Column(Float, nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)
    is_verified = Column(Boolean, nullable=False, default=False)
    verification_date = Column(DateTime, nullable=True)
    verified_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Status and visibility
    status = Column(String, nullable=False, default=ServiceStatus.PENDING_REVIEW, index=True)
    is_featured = Column(Boolean, nullable=False, default=False, index=True)
    featured_until = Column(DateTime, nullable=True)

    # Statistics
    view_count = Column(Integer, nullable=False, default=0)
    inquiry_count = Column(Integer, nullable=False, default=0)
    booking_count = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    provider = relationship("User", back_populates="services", foreign_keys=[provider_id], lazy="selectin")
    verified_by = relationship("User", foreign_keys=[verified_by_id], lazy="selectin")
    city_entries = relationship(
        "ServiceCity",
        back_populates="service",
        cascade="all, delete-orphan",
        order_by="ServiceCity.id",
        lazy="selectin",
    )

    # --- nested blocks, stored as flat columns ---

    @property
    def pricing(self) -> dict:
        return {
            "type": self.pricing_type,
            "amount": self.pricing_amount,
            "currency": self.pricing_currency,
            "additional_fees": list(self.additional_fees or []),
        }

    @pricing.setter
    def pricing(self, value: dict):
        self.pricing_type = value["type"]
        self.pricing_amount = value["amount"]
        self.pricing_currency = value.get("currency") or "NOK"
        self.additional_fees = list(value.get("additional_fees") or [])

    @property
    def service_area(self) -> dict:
        return {
            "cities": [c.name for c in self.city_entries],
            "max_distance": self.max_distance,
            "travel_fee": self.travel_fee,
        }

    @service_area.setter
    def service_area(self, value: dict):
        self.city_entries = [ServiceCity(name=name) for name in value.get("cities") or []]
        self.max_distance = value.get("max_distance")
        travel_fee = value.get("travel_fee")
        self.travel_fee = travel_fee if travel_fee is not None else 0

    @property
    def quality_rating(self) -> dict:
        return {"average": self.rating_average or 0, "count": self.rating_count or 0}

    # --- derived ---

    @property
    def full_price(self) -> float:
        fees = sum((fee.get("amount") or 0) for fee in (self.additional_fees or []))
        return (self.pricing_amount or 0) + fees

    @property
    def is_available(self) -> bool:
        return self.status == ServiceStatus.ACTIVE and bool(self.is_verified)

    @property
    def is_featured_now(self) -> bool:
        if not self.is_featured:
            return False
        return self.featured_until is None or self.featured_until > utcnow()

    def update_rating(self, new_rating: float):
        # running weighted mean
        count = self.rating_count or 0
        total = (self.rating_average or 0) * count + new_rating
        self.rating_count = count + 1
        self.rating_average = total / self.rating_count


def increment_counter(db, service_ids, column_name: str) -> int:
    """Atomically add 1 to a counter column on every listed service."""

    if not service_ids:
        return 0
    column = getattr(Service, column_name)
    return (
        db.query(Service)
        .filter(Service.id.in_(list(service_ids)))
        .update({column: column + 1}, synchronize_session=False)
    )

# marketplace/api/routes/services.py

import logging
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy import and_, asc, desc, not_, or_
from sqlalchemy.orm import Session, sessionmaker

from marketplace.api.pagination import PageRequest, build_pagination
from marketplace.core.errors import Forbidden, NotFound
from marketplace.core.security import (
    authorize,
    get_current_user,
    get_optional_user,
    require_role,
    require_verified,
)
from marketplace.db.base import get_db, utcnow
from marketplace.db.models.category import list_categories
from marketplace.db.models.service import (
    OWNER_EDITABLE_FIELDS,
    REVIEW_TRIGGER_FIELDS,
    Service,
    ServiceCity,
    ServiceStatus,
    increment_counter,
)
from marketplace.db.models.user import User, UserRole
from marketplace.schemas.common import Envelope
from marketplace.schemas.service import (
    CategoryListData,
    ProviderServicesData,
    RatingCreate,
    ServiceCreate,
    ServiceData,
    ServiceListData,
    ServiceUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/services", tags=["services"])

SortKey = Literal["price_asc", "price_desc", "rating_desc", "newest", "oldest"]

# id is the tie-breaker so pages stay stable
SORT_ORDERS = {
    "price_asc": (asc(Service.pricing_amount), asc(Service.id)),
    "price_desc": (desc(Service.pricing_amount), desc(Service.id)),
    "rating_desc": (desc(Service.rating_average), desc(Service.id)),
    "newest": (desc(Service.created_at), desc(Service.id)),
    "oldest": (asc(Service.created_at), asc(Service.id)),
}


def _publicly_visible():
    return and_(Service.status == ServiceStatus.ACTIVE, Service.is_verified.is_(True))


def _featured_now(now):
    return and_(
        Service.is_featured.is_(True),
        or_(Service.featured_until.is_(None), Service.featured_until > now),
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _get_owned_service(db: Session, service_id: int, current_user: User, action: str) -> Service:
    # existence first, then ownership
    service = db.get(Service, service_id)
    if not service:
        raise NotFound("Service not found")
    if str(service.provider_id) != str(current_user.id):
        raise Forbidden(f"Not authorized to {action} this service")
    return service


def _get_visible_service(db: Session, service_id: int) -> Service:
    service = db.get(Service, service_id)
    if not service or not service.is_available:
        raise NotFound("Service not found")
    return service


def record_views(session_factory: sessionmaker, service_ids: list[int]):
    """Fire-and-forget view counter bump for listed services."""

    db = session_factory()
    try:
        increment_counter(db, service_ids, "view_count")
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Could not record views for services %s", service_ids, exc_info=True)
    finally:
        db.close()


# -------------------------
# Create (verified providers)
# -------------------------
@router.post(
    "",
    response_model=Envelope[ServiceData],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(authorize(UserRole.SERVICE_PROVIDER))],
)
def create_service(
    payload: ServiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_verified),
):
    # status is never taken from the client
    service = Service(
        **payload.model_dump(),
        provider_id=current_user.id,
        status=ServiceStatus.PENDING_REVIEW,
    )
    db.add(service)
    db.commit()
    db.refresh(service)

    logger.info("Provider %s created service %s", current_user.id, service.id)
    return {
        "success": True,
        "message": "Service created successfully and pending review",
        "data": {"service": service},
    }


# -------------------------
# Public listing with filters
# -------------------------
@router.get("", response_model=Envelope[ServiceListData], dependencies=[Depends(get_optional_user)])
def list_services(
    request: Request,
    background_tasks: BackgroundTasks,
    category: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    rating: Optional[float] = Query(None, ge=0, le=5),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=50),
    sort: SortKey = Query("newest"),
    db: Session = Depends(get_db),
):
    conditions = [_publicly_visible()]
    if category:
        conditions.append(Service.category == category)
    if city:
        pattern = f"%{_escape_like(city.strip())}%"
        conditions.append(Service.city_entries.any(ServiceCity.name.ilike(pattern, escape="\\")))
    # bounds are independent; min > max simply matches nothing
    if min_price is not None:
        conditions.append(Service.pricing_amount >= min_price)
    if max_price is not None:
        conditions.append(Service.pricing_amount <= max_price)
    if rating is not None:
        conditions.append(Service.rating_average >= rating)

    order = SORT_ORDERS[sort]
    page_request = PageRequest(page=page, limit=limit)
    featured_clause = _featured_now(utcnow())
    base = db.query(Service).filter(*conditions)

    # featured ride on top of every page and are not paged themselves
    featured = (
        base.filter(featured_clause)
        .order_by(desc(Service.featured_until), *order)
        .limit(limit)
        .all()
    )

    regular_query = base.filter(not_(featured_clause))
    total = regular_query.count()
    regular = regular_query.order_by(*order).offset(page_request.offset).limit(limit).all()

    services = featured + regular
    background_tasks.add_task(record_views, request.app.state.session_factory, [s.id for s in services])

    return {
        "success": True,
        "data": {
            "services": services,
            "pagination": build_pagination(page=page_request, total_count=total, extra_count=len(featured)),
        },
    }


# -------------------------
# Static category catalogue
# -------------------------
@router.get("/categories", response_model=Envelope[CategoryListData])
def get_categories():
    return {"success": True, "data": {"categories": list_categories()}}


# -------------------------
# Public listings of one provider
# -------------------------
@router.get("/provider/{provider_id}", response_model=Envelope[ProviderServicesData])
def get_provider_services(provider_id: int, db: Session = Depends(get_db)):
    services = (
        db.query(Service)
        .filter(Service.provider_id == provider_id, _publicly_visible())
        .order_by(desc(Service.is_featured), desc(Service.created_at), desc(Service.id))
        .all()
    )
    return {"success": True, "data": {"services": services}}


# -------------------------
# Single listing
# -------------------------
@router.get(
    "/{service_id}",
    response_model=Envelope[ServiceData],
    dependencies=[Depends(get_optional_user)],
)
def get_service(service_id: int, db: Session = Depends(get_db)):
    service = db.get(Service, service_id)
    if not service:
        raise NotFound("Service not found")

    # no owner bypass: anything not active is hidden
    if service.status != ServiceStatus.ACTIVE:
        raise NotFound("Service not available")

    increment_counter(db, [service.id], "view_count")
    db.commit()
    db.refresh(service)

    return {"success": True, "data": {"service": service}}


# -------------------------
# Owner updates
# -------------------------
@router.put(
    "/{service_id}",
    response_model=Envelope[ServiceData],
    dependencies=[Depends(authorize(UserRole.SERVICE_PROVIDER))],
)
def update_service(
    service_id: int,
    payload: ServiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_verified),
):
    service = _get_owned_service(db, service_id, current_user, action="update")

    updates = payload.model_dump(include=set(OWNER_EDITABLE_FIELDS), exclude_unset=True, exclude_none=True)
    for field, value in updates.items():
        setattr(service, field, value)

    # significant edits go back to moderation
    if any(field in updates for field in REVIEW_TRIGGER_FIELDS):
        service.status = ServiceStatus.PENDING_REVIEW

    db.commit()
    db.refresh(service)

    logger.info("Provider %s updated service %s (%s)", current_user.id, service.id, ", ".join(sorted(updates)))
    return {
        "success": True,
        "message": "Service updated successfully",
        "data": {"service": service},
    }


# -------------------------
# Owner deletes
# -------------------------
@router.delete(
    "/{service_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(authorize(UserRole.SERVICE_PROVIDER))],
)
def delete_service(
    service_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = _get_owned_service(db, service_id, current_user, action="delete")

    db.delete(service)
    db.commit()

    logger.info("Provider %s deleted service %s", current_user.id, service_id)
    return {"success": True, "message": "Service deleted successfully"}


# -------------------------
# Customer rating
# -------------------------
@router.post("/{service_id}/rating", response_model=Envelope[ServiceData])
def rate_service(
    service_id: int,
    payload: RatingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.CUSTOMER)),
):
    service = _get_visible_service(db, service_id)

    service.update_rating(payload.rating)
    db.commit()
    db.refresh(service)

    return {
        "success": True,
        "message": "Rating submitted successfully",
        "data": {"service": service},
    }


# -------------------------
# Inquiry counter
# -------------------------
@router.post("/{service_id}/inquiry", response_model=Envelope, dependencies=[Depends(get_current_user)])
def inquire_service(service_id: int, db: Session = Depends(get_db)):
    service = _get_visible_service(db, service_id)

    increment_counter(db, [service.id], "inquiry_count")
    db.commit()

    return {"success": True, "message": "Inquiry recorded"}

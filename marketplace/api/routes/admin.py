# marketplace/api/routes/admin.py
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc
from sqlalchemy.orm import Session

from marketplace.api.pagination import PageRequest, build_pagination
from marketplace.core.errors import NotFound
from marketplace.core.security import require_role
from marketplace.db.base import get_db, utcnow
from marketplace.db.models.service import Service
from marketplace.db.models.user import User, UserRole
from marketplace.schemas.admin import FeatureUpdate, ServiceModeration, UserModeration
from marketplace.schemas.common import Envelope
from marketplace.schemas.service import ServiceData, ServiceListData, Status
from marketplace.schemas.user import UserData

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

require_admin = require_role(UserRole.ADMIN)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _get_service(db: Session, service_id: int) -> Service:
    service = db.get(Service, service_id)
    if not service:
        raise NotFound("Service not found")
    return service


# --------------------------------------------------
# 1. List every listing, whatever its status
# --------------------------------------------------
@router.get("/services", response_model=Envelope[ServiceListData])
def list_services(
    status: Optional[Status] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(Service)
    if status:
        q = q.filter(Service.status == status)

    page_request = PageRequest(page=page, limit=limit)
    total = q.count()
    services = q.order_by(desc(Service.id)).offset(page_request.offset).limit(limit).all()
    return {
        "success": True,
        "data": {"services": services, "pagination": build_pagination(page=page_request, total_count=total)},
    }


# --------------------------------------------------
# 2. Moderate a listing: status and verification
# --------------------------------------------------
@router.put("/services/{service_id}/moderation", response_model=Envelope[ServiceData])
def moderate_service(
    service_id: int,
    payload: ServiceModeration,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    service = _get_service(db, service_id)

    if payload.status is not None:
        service.status = payload.status

    if payload.is_verified is not None:
        service.is_verified = payload.is_verified
        if payload.is_verified:
            service.verification_date = utcnow()
            service.verified_by_id = admin.id
        else:
            service.verification_date = None
            service.verified_by_id = None

    db.commit()
    db.refresh(service)

    logger.info("Admin %s moderated service %s: status=%s verified=%s", admin.id, service.id, service.status, service.is_verified)
    return {"success": True, "message": "Service moderated successfully", "data": {"service": service}}


# --------------------------------------------------
# 3. Promote / demote a listing
# --------------------------------------------------
@router.put("/services/{service_id}/feature", response_model=Envelope[ServiceData])
def feature_service(
    service_id: int,
    payload: FeatureUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    service = _get_service(db, service_id)

    service.is_featured = payload.is_featured
    service.featured_until = _naive_utc(payload.featured_until) if payload.is_featured else None

    db.commit()
    db.refresh(service)
    return {"success": True, "message": "Service feature flag updated", "data": {"service": service}}


# --------------------------------------------------
# 4. Verify / activate / deactivate a user
# --------------------------------------------------
@router.put("/users/{user_id}", response_model=Envelope[UserData])
def moderate_user(
    user_id: int,
    payload: UserModeration,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    if payload.is_verified is not None:
        user.is_verified = payload.is_verified
    if payload.is_active is not None:
        user.is_active = payload.is_active

    db.commit()
    db.refresh(user)

    logger.info("Admin %s updated user %s: verified=%s active=%s", admin.id, user.id, user.is_verified, user.is_active)
    return {"success": True, "message": "User updated successfully", "data": {"user": user}}

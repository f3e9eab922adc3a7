# marketplace/schemas/admin.py
from datetime import datetime
from typing import Optional

from marketplace.schemas.common import CamelModel
from marketplace.schemas.service import Status


class ServiceModeration(CamelModel):
    status: Optional[Status] = None
    is_verified: Optional[bool] = None


class FeatureUpdate(CamelModel):
    is_featured: bool
    featured_until: Optional[datetime] = None


class UserModeration(CamelModel):
    is_verified: Optional[bool] = None
    is_active: Optional[bool] = None

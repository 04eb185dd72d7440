"""Dashboard feed and overview endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from gallery_admin.db import get_db
from gallery_admin.models.category import Category
from gallery_admin.models.image import Image
from gallery_admin.models.user import User
from gallery_admin.schemas.activity import DashboardActivityRead, DashboardEventRead
from gallery_admin.schemas.dashboard import DashboardStatsRead, RecentImageRead
from gallery_admin.security import get_current_user
from gallery_admin.services.activity_query import (
    DEFAULT_PAGE_SIZE,
    ActivityQueryService,
    get_activity_query_service,
)
from gallery_admin.utils.time import as_utc

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

STORAGE_LIMIT_MB = 1024
STORAGE_WARNING_PERCENT = 80
RECENT_IMAGES_LIMIT = 10


@router.get("/activity", response_model=DashboardActivityRead)
def recent_activity(
    limit: int = DEFAULT_PAGE_SIZE,
    user: User = Depends(get_current_user),
    service: ActivityQueryService = Depends(get_activity_query_service),
) -> DashboardActivityRead:
    """Newest activity for any signed-in user."""

    events = service.recent(limit)
    return DashboardActivityRead(activity=[DashboardEventRead.from_event(event) for event in events])


@router.get("/stats", response_model=DashboardStatsRead)
def dashboard_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> DashboardStatsRead:
    """Library totals, storage usage and the latest uploads."""

    total_images = db.scalar(select(func.count(Image.id))) or 0
    total_categories = db.scalar(select(func.count(Category.id))) or 0
    total_users = db.scalar(select(func.count(User.id))) or 0
    total_bytes = db.scalar(select(func.sum(Image.file_size))) or 0

    storage_used = round(total_bytes / (1024 * 1024), 2)
    storage_percentage = storage_used / STORAGE_LIMIT_MB * 100

    stmt = (
        select(Image)
        .options(selectinload(Image.uploaded_by), selectinload(Image.category))
        .order_by(Image.created_at.desc(), Image.id.desc())
        .limit(RECENT_IMAGES_LIMIT)
    )
    recent_images = [
        RecentImageRead(
            id=image.id,
            title=image.title,
            uploaded_by=image.uploaded_by.email,
            category=image.category.name,
            created_at=as_utc(image.created_at),
            thumbnail_url=image.thumbnail_url,
        )
        for image in db.scalars(stmt)
    ]

    return DashboardStatsRead(
        total_images=total_images,
        total_categories=total_categories,
        total_users=total_users,
        storage_used=storage_used,
        storage_limit=STORAGE_LIMIT_MB,
        storage_percentage=round(storage_percentage, 2),
        storage_warning=storage_percentage > STORAGE_WARNING_PERCENT,
        recent_images=recent_images,
    )

"""Administrative activity log endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from gallery_admin.models.user import User, UserRole
from gallery_admin.schemas.activity import (
    ActionCountRead,
    ActivityEventRead,
    ActivityListRead,
    ActivityStatsRead,
    ActivityTotalsRead,
    ActivityUserRead,
    ActorCountRead,
    DayCountRead,
    PaginationRead,
)
from gallery_admin.security import require_role
from gallery_admin.services.activity_export import CSV_MEDIA_TYPE, export_filename, render_activity_csv
from gallery_admin.services.activity_query import (
    DEFAULT_PAGE_SIZE,
    ActivityFilters,
    ActivityQueryService,
    get_activity_query_service,
)
from gallery_admin.utils.errors import error_response
from gallery_admin.utils.time import as_utc, utcnow

router = APIRouter(prefix="/admin/activity", tags=["activity"])


@router.get("", response_model=ActivityListRead)
def list_activity(
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    search: str | None = None,
    action: str | None = None,
    user_id: int | None = Query(default=None, alias="userId"),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    flagged: bool = False,
    export: Literal["csv"] | None = None,
    admin: User = Depends(require_role({UserRole.ADMIN})),
    service: ActivityQueryService = Depends(get_activity_query_service),
):
    """List activity newest first, or download every match as CSV with ``export=csv``."""

    if start_date is not None and end_date is not None and as_utc(start_date) > as_utc(end_date):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("INVALID_DATE_RANGE", "startDate must not be after endDate."),
        )

    filters = ActivityFilters(
        search=search or None,
        action=action or None,
        actor_id=user_id,
        start_date=start_date,
        end_date=end_date,
        flagged_only=flagged,
    )

    if export == "csv":
        events = service.export(filters)
        return Response(
            content=render_activity_csv(events),
            media_type=CSV_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{export_filename(utcnow())}"'},
        )

    result = service.query(filters, page=page, page_size=limit)
    return ActivityListRead(
        activity=[ActivityEventRead.from_event(event) for event in result.events],
        pagination=PaginationRead(
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
        ),
    )


@router.get("/stats", response_model=ActivityStatsRead)
def activity_stats(
    admin: User = Depends(require_role({UserRole.ADMIN})),
    service: ActivityQueryService = Depends(get_activity_query_service),
) -> ActivityStatsRead:
    stats = service.stats()
    return ActivityStatsRead(
        stats=ActivityTotalsRead(
            total=stats.total,
            today=stats.today,
            week=stats.week,
            month=stats.month,
            suspicious=stats.suspicious,
        ),
        top_actions=[ActionCountRead(action=item.action, count=item.count) for item in stats.top_actions],
        top_users=[
            ActorCountRead(user=ActivityUserRead.model_validate(item.user), count=item.count)
            for item in stats.top_users
        ],
        recent_suspicious=[ActivityEventRead.from_event(event) for event in stats.recent_suspicious],
        activity_trend=[DayCountRead(date=item.date, count=item.count) for item in stats.activity_trend],
    )

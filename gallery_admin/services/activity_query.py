"""Read side of the activity log: filtered pages, exports, stats and feeds."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from fastapi import Depends, HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager

from gallery_admin.db import get_db
from gallery_admin.models.activity import SUSPICIOUS_ACTIONS, ActivityEvent
from gallery_admin.models.image import Image
from gallery_admin.models.user import User
from gallery_admin.utils.errors import error_response
from gallery_admin.utils.time import as_utc, last_days, start_of_day, utcnow

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
TOP_LIMIT = 10
RECENT_SUSPICIOUS_LIMIT = 5
TREND_DAYS = 7


@dataclass
class ActivityFilters:
    """Optional filters, combined with AND."""

    search: str | None = None
    action: str | None = None
    actor_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    flagged_only: bool = False


@dataclass
class ActivityPage:
    events: list[ActivityEvent]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass
class ActionCount:
    action: str
    count: int


@dataclass
class ActorCount:
    user: User
    count: int


@dataclass
class DayCount:
    date: str
    count: int


@dataclass
class ActivityStats:
    total: int = 0
    today: int = 0
    week: int = 0
    month: int = 0
    suspicious: int = 0
    top_actions: list[ActionCount] = field(default_factory=list)
    top_users: list[ActorCount] = field(default_factory=list)
    recent_suspicious: list[ActivityEvent] = field(default_factory=list)
    activity_trend: list[DayCount] = field(default_factory=list)


def clamp_page(page: int, page_size: int) -> tuple[int, int]:
    """Return a 1-indexed page and a page size within ``1..MAX_PAGE_SIZE``."""

    return max(1, page), min(MAX_PAGE_SIZE, max(1, page_size))


def _fetch_failed(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error_response(code, message),
    )


class ActivityQueryService:
    """Answers administrative queries over the activity log."""

    def __init__(self, db: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock

    # --- Query helpers -----------------------------------------------------

    @staticmethod
    def _conditions(filters: ActivityFilters) -> list:
        conditions = []
        if filters.search:
            conditions.append(
                or_(
                    ActivityEvent.action.icontains(filters.search, autoescape=True),
                    User.email.icontains(filters.search, autoescape=True),
                    Image.title.icontains(filters.search, autoescape=True),
                )
            )
        if filters.action:
            conditions.append(ActivityEvent.action.icontains(filters.action, autoescape=True))
        if filters.actor_id is not None:
            conditions.append(ActivityEvent.actor_id == filters.actor_id)
        if filters.start_date is not None:
            conditions.append(ActivityEvent.created_at >= as_utc(filters.start_date))
        if filters.end_date is not None:
            conditions.append(ActivityEvent.created_at <= as_utc(filters.end_date))
        if filters.flagged_only:
            conditions.append(ActivityEvent.action.in_(SUSPICIOUS_ACTIONS))
        return conditions

    @staticmethod
    def _events_stmt(*conditions):
        return (
            select(ActivityEvent)
            .join(ActivityEvent.actor)
            .outerjoin(ActivityEvent.subject)
            .options(contains_eager(ActivityEvent.actor), contains_eager(ActivityEvent.subject))
            .where(*conditions)
            .order_by(ActivityEvent.created_at.desc(), ActivityEvent.id.desc())
        )

    def _count(self, *conditions) -> int:
        stmt = (
            select(func.count(ActivityEvent.id))
            .select_from(ActivityEvent)
            .join(ActivityEvent.actor)
            .outerjoin(ActivityEvent.subject)
            .where(*conditions)
        )
        return int(self.db.scalar(stmt) or 0)

    # --- Public API --------------------------------------------------------

    def query(
        self,
        filters: ActivityFilters,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> ActivityPage:
        """Return one page of matching events, newest first."""

        page, page_size = clamp_page(page, page_size)
        conditions = self._conditions(filters)
        try:
            total = self._count(*conditions)
            stmt = self._events_stmt(*conditions).offset((page - 1) * page_size).limit(page_size)
            events = list(self.db.scalars(stmt).unique().all())
        except SQLAlchemyError as exc:
            logger.exception("Activity logs query failed")
            raise _fetch_failed("ACTIVITY_FETCH_FAILED", "Failed to fetch activity logs.") from exc
        return ActivityPage(events=events, page=page, limit=page_size, total=total)

    def export(self, filters: ActivityFilters) -> list[ActivityEvent]:
        """Return every matching event, bypassing pagination."""

        try:
            stmt = self._events_stmt(*self._conditions(filters))
            return list(self.db.scalars(stmt).unique().all())
        except SQLAlchemyError as exc:
            logger.exception("Activity logs export failed")
            raise _fetch_failed("ACTIVITY_FETCH_FAILED", "Failed to fetch activity logs.") from exc

    def recent(self, limit: int = DEFAULT_PAGE_SIZE) -> list[ActivityEvent]:
        """Newest events for the dashboard feed."""

        _, limit = clamp_page(1, limit)
        try:
            return list(self.db.scalars(self._events_stmt().limit(limit)).unique().all())
        except SQLAlchemyError as exc:
            logger.exception("Dashboard activity query failed")
            raise _fetch_failed("ACTIVITY_FETCH_FAILED", "Failed to fetch activity logs.") from exc

    def stats(self) -> ActivityStats:
        """Aggregate counts, leaders, flagged events and a 7-day trend."""

        now = self.clock()
        try:
            return self._stats(now)
        except SQLAlchemyError as exc:
            logger.exception("Activity stats query failed")
            raise _fetch_failed("ACTIVITY_STATS_FAILED", "Failed to fetch activity statistics.") from exc

    def _stats(self, now: datetime) -> ActivityStats:
        count_column = func.count(ActivityEvent.id).label("total")
        suspicious = ActivityEvent.action.in_(SUSPICIOUS_ACTIONS)

        stats = ActivityStats(
            total=self._count(),
            today=self._count(ActivityEvent.created_at >= now - timedelta(days=1)),
            week=self._count(ActivityEvent.created_at >= now - timedelta(days=7)),
            month=self._count(ActivityEvent.created_at >= now - timedelta(days=30)),
            suspicious=self._count(suspicious),
        )

        action_rows = self.db.execute(
            select(ActivityEvent.action, count_column)
            .group_by(ActivityEvent.action)
            .order_by(count_column.desc(), ActivityEvent.action)
            .limit(TOP_LIMIT)
        ).all()
        stats.top_actions = [ActionCount(action=row.action, count=row.total) for row in action_rows]

        actor_rows = self.db.execute(
            select(ActivityEvent.actor_id, count_column)
            .group_by(ActivityEvent.actor_id)
            .order_by(count_column.desc(), ActivityEvent.actor_id)
            .limit(TOP_LIMIT)
        ).all()
        actor_ids = [row.actor_id for row in actor_rows]
        users: dict[int, User] = {}
        if actor_ids:
            users = {user.id: user for user in self.db.scalars(select(User).where(User.id.in_(actor_ids)))}
        stats.top_users = [
            ActorCount(user=users[row.actor_id], count=row.total)
            for row in actor_rows
            if row.actor_id in users
        ]

        stats.recent_suspicious = list(
            self.db.scalars(self._events_stmt(suspicious).limit(RECENT_SUSPICIOUS_LIMIT)).unique().all()
        )

        for day in last_days(now, TREND_DAYS):
            day_start = start_of_day(day)
            day_count = self._count(
                ActivityEvent.created_at >= day_start,
                ActivityEvent.created_at < day_start + timedelta(days=1),
            )
            stats.activity_trend.append(DayCount(date=day.isoformat(), count=day_count))
        return stats


def get_activity_query_service(db: Session = Depends(get_db)) -> ActivityQueryService:
    return ActivityQueryService(db)


__all__ = [
    "ActionCount",
    "ActivityFilters",
    "ActivityPage",
    "ActivityQueryService",
    "ActivityStats",
    "ActorCount",
    "DayCount",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "clamp_page",
    "get_activity_query_service",
]

"""Activity log schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from gallery_admin.models.user import UserRole
from gallery_admin.utils.time import as_utc


class ActivityUserRead(BaseModel):
    id: int
    email: str
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


class ActivityImageRead(BaseModel):
    id: int
    title: str
    thumbnail_url: str

    model_config = ConfigDict(from_attributes=True)


class ActivityEventRead(BaseModel):
    id: int
    action: str
    details: dict[str, Any] | None
    created_at: datetime
    user: ActivityUserRead
    image: ActivityImageRead | None
    is_suspicious: bool
    is_flagged: bool

    @classmethod
    def from_event(cls, event) -> "ActivityEventRead":
        return cls(
            id=event.id,
            action=event.action,
            details=event.details,
            created_at=as_utc(event.created_at),
            user=ActivityUserRead.model_validate(event.actor),
            image=ActivityImageRead.model_validate(event.subject) if event.subject is not None else None,
            is_suspicious=event.is_suspicious,
            is_flagged=event.is_flagged,
        )


class PaginationRead(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ActivityListRead(BaseModel):
    activity: list[ActivityEventRead]
    pagination: PaginationRead


class ActivityTotalsRead(BaseModel):
    total: int
    today: int
    week: int
    month: int
    suspicious: int


class ActionCountRead(BaseModel):
    action: str
    count: int


class ActorCountRead(BaseModel):
    user: ActivityUserRead
    count: int


class DayCountRead(BaseModel):
    date: str
    count: int


class ActivityStatsRead(BaseModel):
    stats: ActivityTotalsRead
    top_actions: list[ActionCountRead]
    top_users: list[ActorCountRead]
    recent_suspicious: list[ActivityEventRead]
    activity_trend: list[DayCountRead]


class DashboardImageRead(BaseModel):
    title: str
    thumbnail_url: str

    model_config = ConfigDict(from_attributes=True)


class DashboardEventRead(BaseModel):
    """Compact feed entry; the actor is reduced to an email."""

    id: int
    action: str
    details: dict[str, Any] | None
    created_at: datetime
    user: str
    image: DashboardImageRead | None

    @classmethod
    def from_event(cls, event) -> "DashboardEventRead":
        return cls(
            id=event.id,
            action=event.action,
            details=event.details,
            created_at=as_utc(event.created_at),
            user=event.actor.email,
            image=DashboardImageRead.model_validate(event.subject) if event.subject is not None else None,
        )


class DashboardActivityRead(BaseModel):
    activity: list[DashboardEventRead]

"""Activity log model and the closed set of action kinds."""
from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

SUSPICIOUS_PREFIX = "SUSPICIOUS_ACTIVITY_"


class ActionKind(str, enum.Enum):
    """Base actions recorded by the surrounding handlers."""

    IMAGE_UPLOAD = "IMAGE_UPLOAD"
    IMAGE_UPDATE = "IMAGE_UPDATE"
    IMAGE_DELETE = "IMAGE_DELETE"
    IMAGE_BULK_DELETE = "IMAGE_BULK_DELETE"
    IMAGE_BULK_CATEGORY_UPDATE = "IMAGE_BULK_CATEGORY_UPDATE"
    IMAGE_BULK_ADD_TAGS = "IMAGE_BULK_ADD_TAGS"
    IMAGE_BULK_REMOVE_TAGS = "IMAGE_BULK_REMOVE_TAGS"
    CATEGORY_CREATE = "CATEGORY_CREATE"
    CATEGORY_UPDATE = "CATEGORY_UPDATE"
    CATEGORY_DELETE = "CATEGORY_DELETE"
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    PROFILE_UPDATE = "PROFILE_UPDATE"
    SETTINGS_UPDATE = "SETTINGS_UPDATE"

    @property
    def is_delete(self) -> bool:
        return self in DELETE_KINDS


DELETE_KINDS = frozenset(
    {
        ActionKind.IMAGE_DELETE,
        ActionKind.IMAGE_BULK_DELETE,
        ActionKind.CATEGORY_DELETE,
        ActionKind.USER_DELETE,
    }
)


class FlaggedKind(str, enum.Enum):
    """Derived actions written only by the anomaly detector."""

    RAPID_ACTIONS = "RAPID_ACTIONS"
    BULK_DELETIONS = "BULK_DELETIONS"
    MULTIPLE_FAILED_LOGINS = "MULTIPLE_FAILED_LOGINS"

    @property
    def action(self) -> str:
        return f"{SUSPICIOUS_PREFIX}{self.value}"


SUSPICIOUS_ACTIONS: tuple[str, ...] = tuple(kind.action for kind in FlaggedKind)


def parse_action(value: str) -> ActionKind | FlaggedKind | None:
    """Map a stored action string back onto its kind, if it is a known one."""

    if value.startswith(SUSPICIOUS_PREFIX):
        try:
            return FlaggedKind(value[len(SUSPICIOUS_PREFIX):])
        except ValueError:
            return None
    try:
        return ActionKind(value)
    except ValueError:
        return None


class ActivityEvent(Base):
    """One immutable entry of the administrative audit trail."""

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_actor_created", "actor_id", "created_at"),
        Index("ix_activity_logs_action", "action"),
        Index("ix_activity_logs_created_at", "created_at"),
    )

    action: Mapped[str] = mapped_column(String(100), nullable=False)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    actor_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    subject_id: Mapped[int | None] = mapped_column(
        ForeignKey("images.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    actor = relationship("User")
    subject = relationship("Image")

    @property
    def is_suspicious(self) -> bool:
        return isinstance(parse_action(self.action), FlaggedKind)

    @property
    def is_flagged(self) -> bool:
        return isinstance(self.details, dict) and "flagged" in self.details


__all__ = [
    "ActionKind",
    "ActivityEvent",
    "DELETE_KINDS",
    "FlaggedKind",
    "SUSPICIOUS_ACTIONS",
    "SUSPICIOUS_PREFIX",
    "parse_action",
]

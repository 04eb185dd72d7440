"""Time-windowed anomaly checks run after every recorded activity event.

Each check re-counts the actor's rows in the log at evaluation time and, when a
fixed threshold is exceeded, appends a derived ``SUSPICIOUS_ACTIVITY_*`` event.
Counts are read without isolation, so two concurrent writers for the same actor
may both miss each other's row right at the threshold; flagging is approximate
at the boundary.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from gallery_admin.models.activity import DELETE_KINDS, ActionKind, ActivityEvent, FlaggedKind
from gallery_admin.schemas.activity_details import FlagDetails
from gallery_admin.utils.time import utcnow

logger = logging.getLogger(__name__)

RAPID_ACTIONS_WINDOW = timedelta(hours=1)
RAPID_ACTIONS_THRESHOLD = 50

BULK_DELETIONS_WINDOW = timedelta(minutes=10)
BULK_DELETIONS_THRESHOLD = 10

FAILED_LOGINS_WINDOW = timedelta(minutes=5)
FAILED_LOGINS_THRESHOLD = 5


class AnomalyDetector:
    """Flags rapid actions, bulk deletions and repeated failed logins."""

    def __init__(self, db: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock

    def evaluate(self, actor_id: int, action: ActionKind) -> None:
        """Run every applicable check for ``actor_id``; failures are logged, never raised."""

        now = self.clock()
        checks = (
            self._check_rapid_actions,
            self._check_bulk_deletions,
            self._check_failed_logins,
        )
        for check in checks:
            try:
                check(actor_id, action, now)
            except Exception:  # noqa: BLE001
                self.db.rollback()
                logger.exception(
                    "Failed to check suspicious activity",
                    extra={"actor_id": actor_id, "action": action.value, "check": check.__name__},
                )

    def _count(self, actor_id: int, since: datetime, *conditions) -> int:
        stmt = select(func.count(ActivityEvent.id)).where(
            ActivityEvent.actor_id == actor_id,
            ActivityEvent.created_at >= since,
            *conditions,
        )
        return int(self.db.scalar(stmt) or 0)

    def _check_rapid_actions(self, actor_id: int, action: ActionKind, now: datetime) -> None:
        recent_actions = self._count(actor_id, now - RAPID_ACTIONS_WINDOW)
        if recent_actions > RAPID_ACTIONS_THRESHOLD:
            self.flag(
                actor_id,
                FlaggedKind.RAPID_ACTIONS,
                FlagDetails(
                    suspicious_activity_type=FlaggedKind.RAPID_ACTIONS,
                    action_count=recent_actions,
                    time_window="1 hour",
                    last_action=action.value,
                ),
            )

    def _check_bulk_deletions(self, actor_id: int, action: ActionKind, now: datetime) -> None:
        if not action.is_delete:
            return
        recent_deletions = self._count(
            actor_id,
            now - BULK_DELETIONS_WINDOW,
            ActivityEvent.action.in_([kind.value for kind in DELETE_KINDS]),
        )
        if recent_deletions > BULK_DELETIONS_THRESHOLD:
            self.flag(
                actor_id,
                FlaggedKind.BULK_DELETIONS,
                FlagDetails(
                    suspicious_activity_type=FlaggedKind.BULK_DELETIONS,
                    deletion_count=recent_deletions,
                    time_window="10 minutes",
                ),
            )

    def _check_failed_logins(self, actor_id: int, action: ActionKind, now: datetime) -> None:
        if action is not ActionKind.LOGIN_FAILED:
            return
        failed_logins = self._count(
            actor_id,
            now - FAILED_LOGINS_WINDOW,
            ActivityEvent.action == ActionKind.LOGIN_FAILED.value,
        )
        if failed_logins > FAILED_LOGINS_THRESHOLD:
            self.flag(
                actor_id,
                FlaggedKind.MULTIPLE_FAILED_LOGINS,
                FlagDetails(
                    suspicious_activity_type=FlaggedKind.MULTIPLE_FAILED_LOGINS,
                    failed_attempts=failed_logins,
                    time_window="5 minutes",
                ),
            )

    def flag(self, actor_id: int, kind: FlaggedKind, details: FlagDetails) -> ActivityEvent | None:
        """Persist a derived suspicious-activity event straight to storage."""

        event = ActivityEvent(
            action=kind.action,
            details=details.to_json(),
            actor_id=actor_id,
            subject_id=None,
            created_at=self.clock(),
        )
        try:
            self.db.add(event)
            self.db.commit()
        except Exception:  # noqa: BLE001
            self.db.rollback()
            logger.exception(
                "Failed to flag suspicious activity",
                extra={"actor_id": actor_id, "type": kind.value},
            )
            return None

        logger.warning(
            "Suspicious activity detected",
            extra={"actor_id": actor_id, "type": kind.value, "details": event.details},
        )
        return event


__all__ = [
    "AnomalyDetector",
    "BULK_DELETIONS_THRESHOLD",
    "BULK_DELETIONS_WINDOW",
    "FAILED_LOGINS_THRESHOLD",
    "FAILED_LOGINS_WINDOW",
    "RAPID_ACTIONS_THRESHOLD",
    "RAPID_ACTIONS_WINDOW",
]

"""Activity recorder: appends audit events and runs anomaly checks.

Recording is advisory. A call that cannot resolve an actor, or that hits a
storage error, logs and returns ``None`` instead of raising, so handlers call
:meth:`ActivityRecorder.record` after committing their own work.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable

from fastapi import Depends
from pydantic import ValidationError
from pydantic_core import to_jsonable_python
from sqlalchemy.orm import Session

from gallery_admin.db import get_db
from gallery_admin.models.activity import ActionKind, ActivityEvent
from gallery_admin.schemas.activity_details import (
    DETAIL_MODELS,
    CategoryDetails,
    DetailModel,
    ImageDetails,
    SettingsDetails,
    UserDetails,
)
from gallery_admin.security import ActorContext, get_current_actor
from gallery_admin.services.anomaly import AnomalyDetector
from gallery_admin.utils.time import utcnow

logger = logging.getLogger(__name__)

Details = DetailModel | Mapping[str, Any] | None


def serialize_details(action: ActionKind, details: Details) -> dict[str, Any] | None:
    """Return the JSON payload stored for ``details``.

    Plain mappings are coerced through the model registered for ``action`` when
    they fit it, and stored as given otherwise.
    """

    if details is None:
        return None
    if isinstance(details, DetailModel):
        return details.to_json()

    payload = to_jsonable_python(dict(details))
    model = DETAIL_MODELS.get(action)
    if model is None:
        return payload
    try:
        return model.model_validate(payload).to_json()
    except ValidationError:
        return payload


class ActivityRecorder:
    """Append-only writer for :class:`ActivityEvent` rows."""

    def __init__(
        self,
        db: Session,
        *,
        actor: ActorContext | None = None,
        clock: Callable[[], datetime] = utcnow,
        detector: AnomalyDetector | None = None,
    ) -> None:
        self.db = db
        self.actor = actor
        self.clock = clock
        self.detector = detector or AnomalyDetector(db, clock=clock)

    def _resolve_actor(self, actor_id: int | None) -> int | None:
        if actor_id is not None:
            return actor_id
        if self.actor is not None:
            return self.actor.actor_id
        return None

    def record(
        self,
        action: ActionKind | str,
        details: Details = None,
        *,
        subject_id: int | None = None,
        actor_id: int | None = None,
    ) -> ActivityEvent | None:
        """Persist one event for the resolved actor and run the anomaly checks."""

        resolved_actor = self._resolve_actor(actor_id)
        if resolved_actor is None:
            logger.warning(
                "Activity log attempted without actor",
                extra={"action": getattr(action, "value", action)},
            )
            return None

        try:
            kind = ActionKind(action)
        except ValueError:
            logger.warning("Unknown activity action", extra={"action": getattr(action, "value", action)})
            return None

        try:
            event = ActivityEvent(
                action=kind.value,
                details=serialize_details(kind, details),
                actor_id=resolved_actor,
                subject_id=subject_id,
                created_at=self.clock(),
            )
            self.db.add(event)
            self.db.commit()
        except Exception:  # noqa: BLE001
            self.db.rollback()
            logger.exception(
                "Failed to log activity",
                extra={"action": kind.value, "actor_id": resolved_actor},
            )
            return None

        self.detector.evaluate(resolved_actor, kind)
        return event

    # --- Common activity helpers -------------------------------------------

    def log_image_upload(self, image_id: int, image_title: str, actor_id: int | None = None) -> ActivityEvent | None:
        return self.record(
            ActionKind.IMAGE_UPLOAD,
            ImageDetails(image_title=image_title),
            subject_id=image_id,
            actor_id=actor_id,
        )

    def log_image_update(
        self, image_id: int, image_title: str, changes: dict[str, Any], actor_id: int | None = None
    ) -> ActivityEvent | None:
        return self.record(
            ActionKind.IMAGE_UPDATE,
            ImageDetails(image_title=image_title, changes=changes),
            subject_id=image_id,
            actor_id=actor_id,
        )

    def log_image_delete(self, image_title: str, actor_id: int | None = None) -> ActivityEvent | None:
        # The image row is gone by now, so the event carries no subject.
        return self.record(ActionKind.IMAGE_DELETE, ImageDetails(image_title=image_title), actor_id=actor_id)

    def log_category_create(self, category_name: str, actor_id: int | None = None) -> ActivityEvent | None:
        return self.record(ActionKind.CATEGORY_CREATE, CategoryDetails(category_name=category_name), actor_id=actor_id)

    def log_category_update(
        self, category_name: str, changes: dict[str, Any], actor_id: int | None = None
    ) -> ActivityEvent | None:
        return self.record(
            ActionKind.CATEGORY_UPDATE,
            CategoryDetails(category_name=category_name, changes=changes),
            actor_id=actor_id,
        )

    def log_category_delete(self, category_name: str, actor_id: int | None = None) -> ActivityEvent | None:
        return self.record(ActionKind.CATEGORY_DELETE, CategoryDetails(category_name=category_name), actor_id=actor_id)

    def log_user_create(self, user_email: str, role: str, actor_id: int | None = None) -> ActivityEvent | None:
        return self.record(ActionKind.USER_CREATE, UserDetails(user_email=user_email, role=role), actor_id=actor_id)

    def log_user_update(
        self, user_email: str, changes: dict[str, Any], actor_id: int | None = None
    ) -> ActivityEvent | None:
        return self.record(
            ActionKind.USER_UPDATE, UserDetails(user_email=user_email, changes=changes), actor_id=actor_id
        )

    def log_user_delete(self, user_email: str, actor_id: int | None = None) -> ActivityEvent | None:
        return self.record(ActionKind.USER_DELETE, UserDetails(user_email=user_email), actor_id=actor_id)

    def log_login(self, user_email: str, actor_id: int | None = None) -> ActivityEvent | None:
        return self.record(ActionKind.LOGIN_SUCCESS, UserDetails(user_email=user_email), actor_id=actor_id)

    def log_login_failed(self, user_email: str, actor_id: int | None = None) -> ActivityEvent | None:
        return self.record(ActionKind.LOGIN_FAILED, UserDetails(user_email=user_email), actor_id=actor_id)

    def log_logout(self, user_email: str, actor_id: int | None = None) -> ActivityEvent | None:
        return self.record(ActionKind.LOGOUT, UserDetails(user_email=user_email), actor_id=actor_id)

    def log_password_change(self, user_email: str, actor_id: int | None = None) -> ActivityEvent | None:
        return self.record(ActionKind.PASSWORD_CHANGE, UserDetails(user_email=user_email), actor_id=actor_id)

    def log_settings_update(
        self, setting_type: str, changes: dict[str, Any], actor_id: int | None = None
    ) -> ActivityEvent | None:
        return self.record(
            ActionKind.SETTINGS_UPDATE,
            SettingsDetails(setting_type=setting_type, changes=changes),
            actor_id=actor_id,
        )


def get_activity_recorder(
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ActivityRecorder:
    """Recorder bound to the signed-in actor of the current request."""

    return ActivityRecorder(db, actor=actor)


def get_anonymous_recorder(db: Session = Depends(get_db)) -> ActivityRecorder:
    """Recorder for requests without a session; callers pass ``actor_id`` explicitly."""

    return ActivityRecorder(db)


__all__ = [
    "ActivityRecorder",
    "Details",
    "get_activity_recorder",
    "get_anonymous_recorder",
    "serialize_details",
]

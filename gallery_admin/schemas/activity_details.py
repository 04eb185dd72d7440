"""Typed detail payloads attached to activity events.

Every model dumps to the camelCase JSON shape stored in ``activity_logs.details``
and written to the CSV export, e.g. ``{"imageTitle": "Sunset"}``.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from gallery_admin.models.activity import ActionKind, FlaggedKind


class DetailModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ImageDetails(DetailModel):
    image_title: str | None = None
    changes: dict[str, Any] | None = None
    count: int | None = None
    image_ids: list[int] | None = None
    category_name: str | None = None
    tags: list[str] | None = None


class CategoryDetails(DetailModel):
    category_name: str
    changes: dict[str, Any] | None = None


class UserDetails(DetailModel):
    user_email: str
    role: str | None = None
    changes: dict[str, Any] | None = None


class SettingsDetails(DetailModel):
    setting_type: str
    changes: dict[str, Any] | None = None


class FlagDetails(DetailModel):
    flagged: Literal[True] = True
    suspicious_activity_type: FlaggedKind
    time_window: str
    action_count: int | None = None
    last_action: str | None = None
    deletion_count: int | None = None
    failed_attempts: int | None = None


DETAIL_MODELS: dict[ActionKind, type[DetailModel]] = {
    ActionKind.IMAGE_UPLOAD: ImageDetails,
    ActionKind.IMAGE_UPDATE: ImageDetails,
    ActionKind.IMAGE_DELETE: ImageDetails,
    ActionKind.IMAGE_BULK_DELETE: ImageDetails,
    ActionKind.IMAGE_BULK_CATEGORY_UPDATE: ImageDetails,
    ActionKind.IMAGE_BULK_ADD_TAGS: ImageDetails,
    ActionKind.IMAGE_BULK_REMOVE_TAGS: ImageDetails,
    ActionKind.CATEGORY_CREATE: CategoryDetails,
    ActionKind.CATEGORY_UPDATE: CategoryDetails,
    ActionKind.CATEGORY_DELETE: CategoryDetails,
    ActionKind.USER_CREATE: UserDetails,
    ActionKind.USER_UPDATE: UserDetails,
    ActionKind.USER_DELETE: UserDetails,
    ActionKind.LOGIN_SUCCESS: UserDetails,
    ActionKind.LOGIN_FAILED: UserDetails,
    ActionKind.LOGOUT: UserDetails,
    ActionKind.PASSWORD_CHANGE: UserDetails,
    ActionKind.PROFILE_UPDATE: UserDetails,
    ActionKind.SETTINGS_UPDATE: SettingsDetails,
}


__all__ = [
    "CategoryDetails",
    "DETAIL_MODELS",
    "DetailModel",
    "FlagDetails",
    "ImageDetails",
    "SettingsDetails",
    "UserDetails",
]

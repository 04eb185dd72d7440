"""ORM models package."""
from .activity import (
    DELETE_KINDS,
    SUSPICIOUS_ACTIONS,
    ActionKind,
    ActivityEvent,
    FlaggedKind,
    parse_action,
)
from .auth_session import AuthSession
from .base import Base
from .category import Category
from .image import Image
from .user import User, UserRole

__all__ = [
    "ActionKind",
    "ActivityEvent",
    "AuthSession",
    "Base",
    "Category",
    "DELETE_KINDS",
    "FlaggedKind",
    "Image",
    "SUSPICIOUS_ACTIONS",
    "User",
    "UserRole",
    "parse_action",
]

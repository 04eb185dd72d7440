"""Schema package exports."""
from .activity import (
    ActivityEventRead,
    ActivityListRead,
    ActivityStatsRead,
    DashboardActivityRead,
    PaginationRead,
)
from .activity_details import (
    CategoryDetails,
    DetailModel,
    FlagDetails,
    ImageDetails,
    SettingsDetails,
    UserDetails,
)
from .auth import LoginRequest, LoginResponse, PasswordChangeRequest
from .category import CategoryCreate, CategoryRead, CategoryUpdate
from .dashboard import DashboardStatsRead, RecentImageRead
from .image import ImageBulkRequest, ImageBulkResult, ImageCreate, ImageRead, ImageUpdate
from .profile import ProfileUpdate
from .user import UserCreate, UserRead, UserUpdate

__all__ = [
    "ActivityEventRead",
    "ActivityListRead",
    "ActivityStatsRead",
    "CategoryCreate",
    "CategoryDetails",
    "CategoryRead",
    "CategoryUpdate",
    "DashboardActivityRead",
    "DashboardStatsRead",
    "DetailModel",
    "FlagDetails",
    "ImageBulkRequest",
    "ImageBulkResult",
    "ImageCreate",
    "ImageDetails",
    "ImageRead",
    "ImageUpdate",
    "LoginRequest",
    "LoginResponse",
    "PaginationRead",
    "PasswordChangeRequest",
    "ProfileUpdate",
    "RecentImageRead",
    "SettingsDetails",
    "UserCreate",
    "UserDetails",
    "UserRead",
    "UserUpdate",
]

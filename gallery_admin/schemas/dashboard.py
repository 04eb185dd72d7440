"""Dashboard overview schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class RecentImageRead(BaseModel):
    id: int
    title: str
    uploaded_by: str
    category: str
    created_at: datetime
    thumbnail_url: str


class DashboardStatsRead(BaseModel):
    total_images: int
    total_categories: int
    total_users: int
    storage_used: float
    storage_limit: int
    storage_percentage: float
    storage_warning: bool
    recent_images: list[RecentImageRead]

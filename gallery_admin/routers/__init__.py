"""API routers for the gallery admin backend."""
from fastapi import APIRouter

from . import activity, auth, categories, dashboard, health, images, profile, users


def get_api_router() -> APIRouter:
    """Return the root API router."""

    api_router = APIRouter()
    api_router.include_router(health.router)
    api_router.include_router(auth.router)
    api_router.include_router(profile.router)
    api_router.include_router(users.router)
    api_router.include_router(categories.router)
    api_router.include_router(images.router)
    api_router.include_router(activity.router)
    api_router.include_router(dashboard.router)
    return api_router

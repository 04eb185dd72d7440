"""Image metadata endpoints, including bulk operations."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gallery_admin.db import get_db
from gallery_admin.models.activity import ActionKind
from gallery_admin.models.category import Category
from gallery_admin.models.image import Image
from gallery_admin.models.user import User
from gallery_admin.schemas.activity_details import ImageDetails
from gallery_admin.schemas.image import (
    ImageBulkRequest,
    ImageBulkResult,
    ImageCreate,
    ImageRead,
    ImageUpdate,
)
from gallery_admin.security import get_current_user
from gallery_admin.services.activity_recorder import ActivityRecorder, get_activity_recorder
from gallery_admin.utils.errors import error_response

router = APIRouter(prefix="/admin/images", tags=["images"])
logger = logging.getLogger(__name__)


def _image_or_404(db: Session, image_id: int) -> Image:
    image = db.get(Image, image_id)
    if image is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("IMAGE_NOT_FOUND", "Image not found."),
        )
    return image


def _category_or_404(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("CATEGORY_NOT_FOUND", "Category not found."),
        )
    return category


@router.get("", response_model=list[ImageRead])
def list_images(
    category_id: int | None = Query(default=None, alias="categoryId"),
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> list[Image]:
    stmt = select(Image).order_by(Image.created_at.desc(), Image.id.desc())
    if category_id is not None:
        stmt = stmt.where(Image.category_id == category_id)
    if search:
        stmt = stmt.where(Image.title.icontains(search, autoescape=True))
    return list(db.scalars(stmt.offset((page - 1) * limit).limit(limit)))


@router.post("", response_model=ImageRead, status_code=status.HTTP_201_CREATED)
def create_image(
    payload: ImageCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> Image:
    """Register an uploaded image; the binary is already in storage."""

    _category_or_404(db, payload.category_id)
    image = Image(
        title=payload.title,
        description=payload.description,
        category_id=payload.category_id,
        uploaded_by_id=user.id,
        storage_key=payload.storage_key,
        thumbnail_url=payload.thumbnail_url,
        original_url=payload.original_url,
        file_size=payload.file_size,
    )
    image.tag_list = payload.tags
    db.add(image)
    db.commit()
    db.refresh(image)

    recorder.log_image_upload(image.id, image.title)
    return image


@router.post("/bulk", response_model=ImageBulkResult)
def bulk_images(
    payload: ImageBulkRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> ImageBulkResult:
    """Apply one operation to many images and record a single activity entry."""

    images = list(db.scalars(select(Image).where(Image.id.in_(payload.image_ids))))
    if not images:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("IMAGES_NOT_FOUND", "No matching images."),
        )
    image_ids = sorted(image.id for image in images)

    if payload.operation == "delete":
        for image in images:
            db.delete(image)
        db.commit()
        recorder.record(
            ActionKind.IMAGE_BULK_DELETE,
            ImageDetails(count=len(image_ids), image_ids=image_ids),
        )
    elif payload.operation == "update_category":
        category = _category_or_404(db, payload.category_id)
        for image in images:
            image.category_id = category.id
        db.commit()
        recorder.record(
            ActionKind.IMAGE_BULK_CATEGORY_UPDATE,
            ImageDetails(count=len(image_ids), image_ids=image_ids, category_name=category.name),
        )
    else:
        tags = payload.tags or []
        for image in images:
            if payload.operation == "add_tags":
                image.tag_list = image.tag_list + tags
            else:
                image.tag_list = [tag for tag in image.tag_list if tag not in tags]
        db.commit()
        kind = (
            ActionKind.IMAGE_BULK_ADD_TAGS
            if payload.operation == "add_tags"
            else ActionKind.IMAGE_BULK_REMOVE_TAGS
        )
        recorder.record(kind, ImageDetails(count=len(image_ids), image_ids=image_ids, tags=tags))

    logger.info(
        "Bulk image operation applied",
        extra={"operation": payload.operation, "count": len(image_ids), "user_id": user.id},
    )
    return ImageBulkResult(operation=payload.operation, affected=len(image_ids))


@router.get("/{image_id}", response_model=ImageRead)
def get_image(
    image_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Image:
    return _image_or_404(db, image_id)


@router.put("/{image_id}", response_model=ImageRead)
def update_image(
    image_id: int,
    payload: ImageUpdate,
    db: Session = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> Image:
    image = _image_or_404(db, image_id)
    data = payload.model_dump(exclude_unset=True)
    changes: dict[str, Any] = {}

    tags = data.pop("tags", None)
    if tags is not None:
        previous = image.tag_list
        image.tag_list = tags
        if image.tag_list != previous:
            changes["tags"] = image.tag_list
    if data.get("category_id") is not None:
        _category_or_404(db, data["category_id"])

    for field, value in data.items():
        if value is None and field in {"title", "category_id"}:
            continue
        if getattr(image, field) != value:
            setattr(image, field, value)
            changes[field] = value

    db.commit()
    db.refresh(image)

    if changes:
        recorder.log_image_update(image.id, image.title, changes)
    return image


@router.delete("/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_image(
    image_id: int,
    db: Session = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> None:
    image = _image_or_404(db, image_id)
    title = image.title
    db.delete(image)
    db.commit()

    recorder.log_image_delete(title)

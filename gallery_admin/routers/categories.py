"""Category endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gallery_admin.db import get_db
from gallery_admin.models.category import Category
from gallery_admin.models.image import Image
from gallery_admin.models.user import User
from gallery_admin.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate
from gallery_admin.security import get_current_user
from gallery_admin.services.activity_recorder import ActivityRecorder, get_activity_recorder
from gallery_admin.utils.errors import error_response

router = APIRouter(prefix="/categories", tags=["categories"])


def _category_or_404(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("CATEGORY_NOT_FOUND", "Category not found."),
        )
    return category


def _name_taken() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=error_response("CATEGORY_EXISTS", "A category with this name already exists."),
    )


@router.get("", response_model=list[CategoryRead])
def list_categories(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> list[Category]:
    return list(db.scalars(select(Category).order_by(Category.name)))


@router.post("", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> Category:
    name = payload.name.strip()
    if db.scalars(select(Category.id).where(Category.name == name)).first() is not None:
        raise _name_taken()
    category = Category(name=name, description=payload.description)
    db.add(category)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _name_taken() from exc
    db.refresh(category)

    recorder.log_category_create(category.name)
    return category


@router.put("/{category_id}", response_model=CategoryRead)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> Category:
    category = _category_or_404(db, category_id)
    changes: dict[str, Any] = {}
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field == "name":
            if value is None:
                continue
            value = value.strip()
        if getattr(category, field) != value:
            setattr(category, field, value)
            changes[field] = value

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _name_taken() from exc
    db.refresh(category)

    if changes:
        recorder.log_category_update(category.name, changes)
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> None:
    """Delete an empty category."""

    category = _category_or_404(db, category_id)
    image_count = db.scalar(select(func.count(Image.id)).where(Image.category_id == category.id)) or 0
    if image_count:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_response(
                "CATEGORY_IN_USE",
                "Category still has images.",
                {"image_count": image_count},
            ),
        )
    name = category.name
    db.delete(category)
    db.commit()

    recorder.log_category_delete(name)

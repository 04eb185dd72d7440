"""User administration endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gallery_admin.db import get_db
from gallery_admin.models.user import User, UserRole
from gallery_admin.schemas.user import UserCreate, UserRead, UserUpdate
from gallery_admin.security import require_role
from gallery_admin.services.activity_recorder import ActivityRecorder, get_activity_recorder
from gallery_admin.utils.errors import error_response
from gallery_admin.utils.tokens import hash_password

router = APIRouter(prefix="/admin/users", tags=["users"])


def _user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("USER_NOT_FOUND", "User not found."),
        )
    return user


def _email_taken() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=error_response("USER_EXISTS", "A user with this email already exists."),
    )


@router.get("", response_model=list[UserRead])
def list_users(
    db: Session = Depends(get_db),
    admin: User = Depends(require_role({UserRole.ADMIN})),
) -> list[User]:
    return list(db.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())))


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_role({UserRole.ADMIN})),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> User:
    """Create a back-office user."""

    email = payload.email.lower()
    if db.scalars(select(User.id).where(User.email == email)).first() is not None:
        raise _email_taken()

    user = User(
        email=email,
        name=payload.name,
        role=payload.role,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _email_taken() from exc
    db.refresh(user)

    recorder.log_user_create(user.email, user.role.value)
    return user


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_role({UserRole.ADMIN})),
) -> User:
    return _user_or_404(db, user_id)


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_role({UserRole.ADMIN})),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> User:
    """Apply a partial update; only changed fields end up in the activity entry."""

    user = _user_or_404(db, user_id)
    data = payload.model_dump(exclude_unset=True)
    changes: dict[str, Any] = {}

    password = data.pop("password", None)
    if password:
        user.password_hash = hash_password(password)
        changes["password"] = "changed"
    if data.get("email"):
        data["email"] = data["email"].lower()
        taken = db.scalars(select(User.id).where(User.email == data["email"], User.id != user.id)).first()
        if taken is not None:
            raise _email_taken()

    for field, value in data.items():
        if value is None or getattr(user, field) == value:
            continue
        setattr(user, field, value)
        changes[field] = value

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _email_taken() from exc
    db.refresh(user)

    if changes:
        recorder.log_user_update(user.email, changes)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_role({UserRole.ADMIN})),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> None:
    """Delete a user along with their sessions, uploads and activity."""

    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("CANNOT_DELETE_SELF", "You cannot delete your own account."),
        )
    user = _user_or_404(db, user_id)
    email = user.email
    db.delete(user)
    db.commit()

    recorder.log_user_delete(email)

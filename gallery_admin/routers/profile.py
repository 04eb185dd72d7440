"""Self-service profile endpoints."""
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gallery_admin.db import get_db
from gallery_admin.models.activity import ActionKind
from gallery_admin.models.user import User
from gallery_admin.schemas.activity_details import UserDetails
from gallery_admin.schemas.auth import PasswordChangeRequest
from gallery_admin.schemas.profile import ProfileUpdate
from gallery_admin.schemas.user import UserRead
from gallery_admin.security import get_current_user
from gallery_admin.services.activity_recorder import ActivityRecorder, get_activity_recorder
from gallery_admin.utils.errors import error_response
from gallery_admin.utils.tokens import hash_password, verify_password

router = APIRouter(prefix="/profile", tags=["profile"])


@router.put("", response_model=UserRead)
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> User:
    """Update the signed-in user's own name or email."""

    changes: dict[str, Any] = {}
    if payload.email is not None and payload.email.lower() != user.email:
        email = payload.email.lower()
        if db.scalars(select(User.id).where(User.email == email)).first() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=error_response("USER_EXISTS", "A user with this email already exists."),
            )
        changes["email"] = email
    if payload.name is not None and payload.name != user.name:
        changes["name"] = payload.name

    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)

    if changes:
        recorder.record(ActionKind.PROFILE_UPDATE, UserDetails(user_email=user.email, changes=changes))
    return user


@router.put("/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    payload: PasswordChangeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> None:
    """Replace the signed-in user's password after checking the current one."""

    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("INVALID_PASSWORD", "Current password is incorrect."),
        )

    user.password_hash = hash_password(payload.new_password)
    db.commit()
    recorder.log_password_change(user.email)

"""Login, logout and current-user endpoints."""
from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from gallery_admin.config import get_settings
from gallery_admin.db import get_db
from gallery_admin.models.auth_session import AuthSession
from gallery_admin.models.user import User
from gallery_admin.schemas.auth import LoginRequest, LoginResponse
from gallery_admin.schemas.user import UserRead
from gallery_admin.security import get_current_user, require_session
from gallery_admin.services.activity_recorder import (
    ActivityRecorder,
    get_activity_recorder,
    get_anonymous_recorder,
)
from gallery_admin.utils.errors import error_response
from gallery_admin.utils.time import utcnow
from gallery_admin.utils.tokens import gen_token, verify_password

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error_response("INVALID_CREDENTIALS", "Invalid email or password."),
    )


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_anonymous_recorder),
) -> LoginResponse:
    """Exchange credentials for a bearer token."""

    email = payload.email.lower()
    user = db.scalars(select(User).where(func.lower(User.email) == email)).first()
    if user is None:
        logger.info("Login attempt for unknown email")
        raise _invalid_credentials()

    if not user.is_active or not verify_password(payload.password, user.password_hash):
        recorder.log_login_failed(user.email, actor_id=user.id)
        raise _invalid_credentials()

    raw, prefix, token_hash = gen_token()
    expires_at = utcnow() + timedelta(hours=get_settings().SESSION_TTL_HOURS)
    db.add(AuthSession(prefix=prefix, token_hash=token_hash, user_id=user.id, expires_at=expires_at))
    db.commit()

    recorder.log_login(user.email, actor_id=user.id)
    return LoginResponse(token=raw, expires_at=expires_at, user=UserRead.model_validate(user))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    db: Session = Depends(get_db),
    auth_session: AuthSession = Depends(require_session),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> None:
    """Revoke the bearer token used for this request."""

    auth_session.revoked_at = utcnow()
    db.commit()
    recorder.log_logout(auth_session.user.email)


@router.get("/me", response_model=UserRead)
def me(user: User = Depends(get_current_user)) -> User:
    return user

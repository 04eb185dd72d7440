"""Security dependencies for bearer token validation and role enforcement."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Set

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from gallery_admin.db import get_db
from gallery_admin.models.auth_session import AuthSession
from gallery_admin.models.user import User, UserRole
from gallery_admin.utils.errors import error_response
from gallery_admin.utils.time import as_utc, utcnow
from gallery_admin.utils.tokens import hash_token


@dataclass(frozen=True)
class ActorContext:
    """Identity of the user performing the current request."""

    actor_id: int
    email: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "ActorContext":
        return cls(actor_id=user.id, email=user.email, role=user.role)


def _extract_token(authorization: str | None = Header(default=None)) -> str | None:
    """Read the token from ``Authorization: Bearer ...``."""
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip()
    return None


def find_valid_session(db: Session, raw_token: str) -> AuthSession | None:
    """Return the live session matching ``raw_token``, if any."""

    row = (
        db.query(AuthSession)
        .filter(AuthSession.token_hash == hash_token(raw_token), AuthSession.revoked_at.is_(None))
        .first()
    )
    if row is None or as_utc(row.expires_at) <= utcnow():
        return None
    return row


def require_session(
    db: Session = Depends(get_db),
    token: str | None = Depends(_extract_token),
) -> AuthSession:
    """Validate bearer tokens and return the corresponding session row."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("NO_TOKEN", "Bearer token required."),
        )

    auth_session = find_valid_session(db, token)
    if auth_session is None or not auth_session.user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("UNAUTHORIZED", "Invalid or expired token."),
        )

    auth_session.last_used_at = utcnow()
    db.commit()
    return auth_session


def get_current_user(auth_session: AuthSession = Depends(require_session)) -> User:
    return auth_session.user


def get_current_actor(user: User = Depends(get_current_user)) -> ActorContext:
    return ActorContext.from_user(user)


def require_role(allowed: Set[UserRole]) -> Callable:
    """Enforce that the signed-in user holds one of the allowed roles."""

    if not allowed:
        raise RuntimeError("require_role needs a non-empty set of UserRole")

    def _dep(user: User = Depends(get_current_user)) -> User:
        if user.role in allowed:
            return user
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response(
                "INSUFFICIENT_ROLE",
                f"Requires one of: {sorted(role.value for role in allowed)}",
            ),
        )

    return _dep


__all__ = [
    "ActorContext",
    "find_valid_session",
    "get_current_actor",
    "get_current_user",
    "require_role",
    "require_session",
]

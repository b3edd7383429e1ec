"""Authentication context extraction and ownership guard utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from roundbook.core.config import get_settings
from roundbook.db.dependencies import get_db_session
from roundbook.models.entities import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from headers and DB state."""

    user_id: int
    subject: str
    email: str
    display_name: str


def _require_identity_headers(
    x_auth_subject: str | None,
    x_auth_email: str | None,
    x_auth_name: str | None,
) -> tuple[str, str, str]:
    if not x_auth_subject or not x_auth_email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=(
                "Missing identity headers. Expected X-AUTH-SUBJECT and X-AUTH-EMAIL "
                "or enable development principal fallback."
            ),
        )

    display_name = x_auth_name or x_auth_email
    return x_auth_subject.strip(), x_auth_email.strip().lower(), display_name.strip()


def _resolve_identity(
    x_auth_subject: str | None,
    x_auth_email: str | None,
    x_auth_name: str | None,
) -> tuple[str, str, str]:
    settings = get_settings()
    if x_auth_subject and x_auth_email:
        return _require_identity_headers(x_auth_subject, x_auth_email, x_auth_name)

    if settings.auth_allow_dev_principal:
        return (
            settings.auth_dev_subject.strip(),
            settings.auth_dev_email.strip().lower(),
            settings.auth_dev_display_name.strip(),
        )

    return _require_identity_headers(x_auth_subject, x_auth_email, x_auth_name)


def _upsert_user(db: Session, *, subject: str, email: str, display_name: str) -> User:
    user = db.scalar(select(User).where(User.subject == subject))
    now = datetime.utcnow()

    if user is None:
        user = User(
            subject=subject,
            email=email,
            display_name=display_name,
            last_login_at=now,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        db.flush()
        return user

    changed = False
    if user.email != email:
        user.email = email
        changed = True
    if user.display_name != display_name:
        user.display_name = display_name
        changed = True

    user.last_login_at = now
    if changed:
        user.updated_at = now
    db.flush()
    return user


def ensure_user_principal(db: Session, *, subject: str, email: str, display_name: str) -> User:
    """Ensure user exists and return persisted row.

    Utility exported for tests and the seed command.
    """

    normalized_email = email.strip().lower()
    user = _upsert_user(
        db,
        subject=subject.strip(),
        email=normalized_email,
        display_name=display_name.strip() or normalized_email,
    )
    db.commit()
    db.refresh(user)
    return user


def get_current_user_context(
    x_auth_subject: str | None = Header(default=None, alias="X-AUTH-SUBJECT"),
    x_auth_email: str | None = Header(default=None, alias="X-AUTH-EMAIL"),
    x_auth_name: str | None = Header(default=None, alias="X-AUTH-NAME"),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve current request user.

    Identity comes from trusted headers set by the authenticating proxy
    (or test clients); the user row is created on first sight.
    """

    subject, email, display_name = _resolve_identity(x_auth_subject, x_auth_email, x_auth_name)
    user = _upsert_user(db, subject=subject, email=email, display_name=display_name)
    db.commit()

    return RequestUserContext(
        user_id=user.id,
        subject=user.subject,
        email=user.email,
        display_name=user.display_name,
    )


def is_owner(context: RequestUserContext, owner_id: int) -> bool:
    """Whether the acting user is the recorded owner."""

    return context.user_id == owner_id


def ensure_owner(context: RequestUserContext, owner_id: int) -> None:
    """Raise 403 unless the acting user is the recorded owner."""

    if not is_owner(context, owner_id):
        logger.warning(
            "Ownership check failed for user %s (owner %s)",
            context.user_id,
            owner_id,
            extra={"user_id": context.user_id, "owner_id": owner_id},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not own this resource.",
        )

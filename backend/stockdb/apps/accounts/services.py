from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from stockdb.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    verify_password,
)
from . import models, schemas

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_PASSWORD_LENGTH = 8
DEFAULT_ORG_NAME = os.getenv("DEFAULT_ORG_NAME", "Inventario Demo")
DEFAULT_ORG_SLUG_PREFIX = "inventario"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class AuthenticationError(Exception):
    """Raised when login credentials are rejected."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    INACTIVE = "inactive"

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


def auth_error_detail(exc: AuthenticationError) -> schemas.AuthErrorDetail:
    """
    Map an authentication failure to the canned title/message pair the
    sign-in screen displays. Unknown failures keep their raw message.
    """
    if exc.code == AuthenticationError.INVALID_CREDENTIALS:
        return schemas.AuthErrorDetail(
            title="Credenciales incorrectas",
            message="Verifica tu email y contraseña e inténtalo de nuevo.",
        )
    if exc.code == AuthenticationError.EMAIL_NOT_CONFIRMED:
        return schemas.AuthErrorDetail(
            title="Email no confirmado",
            message="Contacta a un agente de soporte para habilitar tu acceso.",
        )
    return schemas.AuthErrorDetail(
        title="No se pudo iniciar sesión",
        message=str(exc) or "Inténtalo de nuevo.",
    )


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _normalise_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Session, *, email: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.email == _normalise_email(email))
        .first()
    )


def create_user(
    db: Session,
    *,
    email: str,
    password: str,
    full_name: Optional[str] = None,
    email_confirmed: bool = True,
) -> models.User:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
        )
    if get_user_by_email(db, email=email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists.",
        )
    user = models.User(
        email=_normalise_email(email),
        full_name=(full_name or "").strip() or None,
        hashed_password=get_password_hash(password),
        is_active=True,
        email_confirmed=email_confirmed,
    )
    db.add(user)
    db.flush()
    return user


def authenticate_user(db: Session, *, email: str, password: str) -> models.User:
    """
    Password sign-in.

    Returns the user on success; raises AuthenticationError otherwise. Unknown
    emails and wrong passwords produce the same error so callers cannot tell
    which accounts exist.
    """
    user = get_user_by_email(db, email=email)
    if not user or not verify_password(password, user.hashed_password):
        logger.warning(
            "Login failed",
            extra={"email": _normalise_email(email), "reason": AuthenticationError.INVALID_CREDENTIALS},
        )
        raise AuthenticationError(AuthenticationError.INVALID_CREDENTIALS, "Invalid login credentials")

    if not user.email_confirmed:
        logger.warning("Login blocked", extra={"user_id": user.id, "reason": AuthenticationError.EMAIL_NOT_CONFIRMED})
        raise AuthenticationError(AuthenticationError.EMAIL_NOT_CONFIRMED, "Email not confirmed")

    if not user.is_active:
        logger.warning("Login blocked", extra={"user_id": user.id, "reason": AuthenticationError.INACTIVE})
        raise AuthenticationError(AuthenticationError.INACTIVE, "Inactive user account")

    user.last_login_at = datetime.utcnow()
    db.add(user)
    return user


def issue_access_token_for_user(user: models.User, *, org_id: str) -> Tuple[str, int]:
    """
    Create a JWT access token for the user.

    Returns (token_string, expires_in_seconds).
    """
    payload = {
        "sub": str(user.id),
        "org_id": org_id,
    }
    access_token = create_access_token(
        data=payload,
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return access_token, int(ACCESS_TOKEN_EXPIRE_MINUTES * 60)


def revoke_tokens(db: Session, *, user: models.User) -> None:
    """Sign-out: every token issued up to now stops validating."""
    user.token_revoked_at = datetime.utcnow()
    db.add(user)
    logger.info("User signed out", extra={"user_id": user.id})


def update_profile(
    db: Session,
    *,
    user: models.User,
    payload: schemas.UserProfileUpdate,
) -> models.User:
    if payload.full_name is not None:
        name = payload.full_name.strip()
        if not name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="full_name cannot be blank.",
            )
        user.full_name = name

    if payload.email is not None:
        email = _normalise_email(payload.email)
        if email != user.email:
            if get_user_by_email(db, email=email):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="A user with this email already exists.",
                )
            user.email = email

    db.add(user)
    db.flush()
    return user


def change_password(
    db: Session,
    *,
    user: models.User,
    payload: schemas.PasswordChange,
) -> None:
    if len(payload.new_password or "") < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
        )
    if payload.new_password != payload.confirm_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Passwords do not match.",
        )
    user.hashed_password = get_password_hash(payload.new_password)
    db.add(user)


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------


def list_memberships(db: Session, *, user_id: str) -> list[models.Membership]:
    return (
        db.query(models.Membership)
        .filter(models.Membership.user_id == user_id)
        .order_by(models.Membership.created_at.asc(), models.Membership.id.asc())
        .all()
    )


def _org_slug_for(user: models.User, *, full: bool = False) -> str:
    # UUIDv7 ids lead with the timestamp; the random tail keeps slugs distinct.
    hex_id = str(user.id).replace("-", "")
    return f"{DEFAULT_ORG_SLUG_PREFIX}-{hex_id if full else hex_id[-8:]}"


def bootstrap_org_if_needed(db: Session, *, user: models.User) -> Tuple[models.Membership, bool]:
    """
    Make sure the user belongs to at least one organization.

    Returns (membership, created). An existing membership is returned as-is;
    otherwise a fresh organization is provisioned with the user as owner.
    """
    memberships = list_memberships(db, user_id=user.id)
    if memberships:
        return memberships[0], False

    slug = _org_slug_for(user)
    org = db.query(models.Organization).filter(models.Organization.slug == slug).first()
    if org is not None and org.created_by_user_id != user.id:
        slug = _org_slug_for(user, full=True)
        org = db.query(models.Organization).filter(models.Organization.slug == slug).first()
    if org is None:
        org = models.Organization(
            name=DEFAULT_ORG_NAME,
            slug=slug,
            created_by_user_id=user.id,
        )
        db.add(org)
        db.flush()

    membership = models.Membership(
        org_id=org.id,
        user_id=user.id,
        role=models.MembershipRole.OWNER,
    )
    db.add(membership)
    db.flush()
    logger.info(
        "Organization bootstrapped",
        extra={"user_id": user.id, "org_id": org.id, "slug": slug},
    )
    return membership, True

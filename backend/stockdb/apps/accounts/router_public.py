# backend/stockdb/apps/accounts/router_public.py

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from stockdb.database import get_db
from stockdb.security import get_current_active_user
from . import models, schemas, services

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# LOGIN / LOGOUT
# ---------------------------------------------------------------------------


@router.post(
    "/login",
    response_model=schemas.Token,
    summary="Login with email and password",
    responses={401: {"model": schemas.AuthErrorDetail}},
)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Password sign-in.

    On first sign-in the user's organization is provisioned (owner
    membership) so every tenant-scoped endpoint works right away.
    Failures answer 401 with a `{title, message}` detail and no token.
    """
    try:
        user = services.authenticate_user(db, email=payload.email, password=payload.password)
    except services.AuthenticationError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=services.auth_error_detail(exc).model_dump(),
        )

    membership, _ = services.bootstrap_org_if_needed(db, user=user)
    db.commit()
    db.refresh(user)

    token, expires_in = services.issue_access_token_for_user(user, org_id=membership.org_id)
    return schemas.Token(
        access_token=token,
        expires_in=expires_in,
        user=user,
        org_id=membership.org_id,
        role=membership.role,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    services.revoke_tokens(db, user=current_user)
    db.commit()


# ---------------------------------------------------------------------------
# CURRENT USER
# ---------------------------------------------------------------------------


@router.get("/me", response_model=schemas.UserRead)
def read_me(current_user: models.User = Depends(get_current_active_user)):
    return current_user


@router.patch("/me", response_model=schemas.UserRead)
def update_me(
    payload: schemas.UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    user = services.update_profile(db, user=current_user, payload=payload)
    db.commit()
    db.refresh(user)
    return user


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def change_my_password(
    payload: schemas.PasswordChange,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    services.change_password(db, user=current_user, payload=payload)
    db.commit()

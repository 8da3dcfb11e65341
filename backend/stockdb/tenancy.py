"""
Organization (tenant) scoping.

Every tenant-scoped endpoint receives an explicit `OrgContext` built here
from the authenticated user and one of their memberships. Handlers and
services take the org id from the context; nothing reads an ambient
"current organization".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from stockdb.apps.accounts import models as account_models

from .database import get_db
from .security import decode_access_token, get_current_active_user, oauth2_scheme


@dataclass(frozen=True)
class OrgContext:
    user: account_models.User
    org_id: str
    role: account_models.MembershipRole

    @property
    def user_id(self) -> str:
        return self.user.id


def resolve_membership(
    db: Session,
    *,
    user_id: str,
    org_id: Optional[str] = None,
) -> Optional[account_models.Membership]:
    """
    Pick the membership the request runs under.

    With an explicit org id only that membership qualifies; otherwise the
    oldest membership wins.
    """
    query = db.query(account_models.Membership).filter(
        account_models.Membership.user_id == user_id
    )
    if org_id:
        query = query.filter(account_models.Membership.org_id == org_id)
    return query.order_by(
        account_models.Membership.created_at.asc(),
        account_models.Membership.id.asc(),
    ).first()


def get_org_context(
    current_user: account_models.User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
    x_org_id: Optional[str] = Header(None, alias="X-Org-Id"),
) -> OrgContext:
    """
    FastAPI dependency resolving the organization for the request.

    An `X-Org-Id` header must name one of the caller's memberships. Without
    it the token's `org_id` claim is used while that membership exists,
    then the oldest membership.

    Usage:
        @router.get(...)
        def endpoint(ctx: OrgContext = Depends(get_org_context)):
            services.list_x(db, org_id=ctx.org_id)
    """
    header_org_id = (x_org_id or "").strip() or None
    if header_org_id:
        membership = resolve_membership(db, user_id=current_user.id, org_id=header_org_id)
        if membership is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not a member of this organization.",
            )
        return OrgContext(user=current_user, org_id=membership.org_id, role=membership.role)

    membership = None
    claim_org_id = decode_access_token(token).get("org_id")
    if claim_org_id:
        membership = resolve_membership(db, user_id=current_user.id, org_id=claim_org_id)
    if membership is None:
        membership = resolve_membership(db, user_id=current_user.id)
    if membership is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No organization for the current session; bootstrap one first.",
        )
    return OrgContext(user=current_user, org_id=membership.org_id, role=membership.role)


def require_org_roles(
    *allowed_roles: Union[account_models.MembershipRole, str],
) -> Callable[..., OrgContext]:
    """
    Dependency factory restricting an endpoint to some membership roles.

    OWNER always passes.
    """
    normalised = set()
    for r in allowed_roles:
        if isinstance(r, account_models.MembershipRole):
            normalised.add(r)
        else:
            try:
                normalised.add(account_models.MembershipRole(r))
            except ValueError:
                raise ValueError(f"Unknown role {r!r} passed to require_org_roles()")

    def dependency(ctx: OrgContext = Depends(get_org_context)) -> OrgContext:
        if ctx.role == account_models.MembershipRole.OWNER:
            return ctx
        if ctx.role not in normalised:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions for this operation",
            )
        return ctx

    return dependency

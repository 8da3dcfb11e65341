from __future__ import annotations

import pytest
from fastapi import HTTPException

from stockdb import security, tenancy
from stockdb.apps.accounts import models, router_onboarding, router_public, schemas, services


def _user(db, email="ana@example.com", password="s3cret-pass", **kwargs):
    user = services.create_user(db, email=email, password=password, full_name="Ana Pérez", **kwargs)
    db.commit()
    return user


def _token(user, org_id=None):
    data = {"sub": user.id}
    if org_id:
        data["org_id"] = org_id
    return security.create_access_token(data=data)


def _second_org(db, user, role=models.MembershipRole.MEMBER):
    org = models.Organization(name="Sucursal Norte", slug="sucursal-norte")
    db.add(org)
    db.flush()
    membership = models.Membership(org_id=org.id, user_id=user.id, role=role)
    db.add(membership)
    db.flush()
    return membership


def test_token_org_claim_selects_the_org(db_session):
    user = _user(db_session)
    first, _ = services.bootstrap_org_if_needed(db_session, user=user)
    second = _second_org(db_session, user)

    by_claim = tenancy.get_org_context(
        current_user=user, db=db_session, token=_token(user, second.org_id), x_org_id=None
    )
    by_header = tenancy.get_org_context(
        current_user=user, db=db_session, token=_token(user, second.org_id), x_org_id=first.org_id
    )
    without_claim = tenancy.get_org_context(current_user=user, db=db_session, token=_token(user), x_org_id=None)

    assert (by_claim.org_id, by_claim.role) == (second.org_id, models.MembershipRole.MEMBER)
    assert by_header.org_id == first.org_id
    assert without_claim.org_id == first.org_id


def test_stale_org_claim_falls_back_to_oldest_membership(db_session):
    user = _user(db_session)
    first, _ = services.bootstrap_org_if_needed(db_session, user=user)
    second = _second_org(db_session, user)
    token = _token(user, second.org_id)
    db_session.delete(second)
    db_session.flush()

    ctx = tenancy.get_org_context(current_user=user, db=db_session, token=token, x_org_id=None)

    assert ctx.org_id == first.org_id


def test_login_with_wrong_password_returns_canned_error_and_no_token(db_session):
    user = _user(db_session)

    with pytest.raises(HTTPException) as excinfo:
        router_public.login(
            schemas.LoginRequest(email="ana@example.com", password="wrong-password"),
            db=db_session,
        )

    assert excinfo.value.status_code == 401
    assert excinfo.value.detail["title"] == "Credenciales incorrectas"
    assert services.list_memberships(db_session, user_id=user.id) == []
    # No session means tenant endpoints stay closed.
    with pytest.raises(HTTPException) as ctx_exc:
        security.get_current_user(token="not-a-token", db=db_session)
    assert ctx_exc.value.status_code == 401


def test_unknown_email_gets_same_error_as_wrong_password(db_session):
    with pytest.raises(services.AuthenticationError) as excinfo:
        services.authenticate_user(db_session, email="nobody@example.com", password="whatever")

    assert excinfo.value.code == services.AuthenticationError.INVALID_CREDENTIALS


def test_unconfirmed_email_is_blocked(db_session):
    _user(db_session, email_confirmed=False)

    with pytest.raises(services.AuthenticationError) as excinfo:
        services.authenticate_user(db_session, email="ana@example.com", password="s3cret-pass")

    assert excinfo.value.code == services.AuthenticationError.EMAIL_NOT_CONFIRMED
    assert services.auth_error_detail(excinfo.value).title == "Email no confirmado"


def test_first_login_bootstraps_org_and_token_resolves_context(db_session):
    _user(db_session)

    token = router_public.login(
        schemas.LoginRequest(email="ANA@example.com", password="s3cret-pass"),
        db=db_session,
    )

    assert token.role == models.MembershipRole.OWNER
    org = db_session.query(models.Organization).filter(models.Organization.id == token.org_id).one()
    assert org.slug.startswith("inventario-")

    current = security.get_current_user(token=token.access_token, db=db_session)
    ctx = tenancy.get_org_context(current_user=current, db=db_session, token=token.access_token, x_org_id=None)
    assert ctx.org_id == token.org_id
    assert ctx.user_id == current.id


def test_bootstrap_is_idempotent(db_session):
    user = _user(db_session)

    first, created = services.bootstrap_org_if_needed(db_session, user=user)
    again, created_again = services.bootstrap_org_if_needed(db_session, user=user)

    assert created is True
    assert created_again is False
    assert first.org_id == again.org_id


def test_bootstrap_endpoint_reports_creation(db_session):
    user = _user(db_session)

    result = router_onboarding.bootstrap_org(db=db_session, current_user=user)

    assert result.created is True
    assert result.role == models.MembershipRole.OWNER


def test_sign_out_revokes_existing_tokens(db_session):
    user = _user(db_session)
    membership, _ = services.bootstrap_org_if_needed(db_session, user=user)
    token, _ = services.issue_access_token_for_user(user, org_id=membership.org_id)
    assert security.get_current_user(token=token, db=db_session).id == user.id

    services.revoke_tokens(db_session, user=user)
    db_session.commit()

    with pytest.raises(HTTPException) as excinfo:
        security.get_current_user(token=token, db=db_session)
    assert excinfo.value.status_code == 401


def test_user_without_membership_has_no_org_context(db_session):
    user = _user(db_session)

    with pytest.raises(HTTPException) as excinfo:
        tenancy.get_org_context(current_user=user, db=db_session, token=_token(user), x_org_id=None)
    assert excinfo.value.status_code == 403


def test_foreign_org_header_is_forbidden(db_session, owner):
    stranger = _user(db_session, email="stranger@example.com")
    services.bootstrap_org_if_needed(db_session, user=stranger)

    with pytest.raises(HTTPException) as excinfo:
        tenancy.get_org_context(
            current_user=stranger, db=db_session, token=_token(stranger), x_org_id=owner.org_id
        )
    assert excinfo.value.status_code == 403


def test_role_gate_lets_owner_and_admin_through(db_session):
    user = _user(db_session)
    check = tenancy.require_org_roles(models.MembershipRole.ADMIN)

    for role in (models.MembershipRole.OWNER, models.MembershipRole.ADMIN):
        ctx = tenancy.OrgContext(user=user, org_id="org-1", role=role)
        assert check(ctx=ctx) is ctx

    member = tenancy.OrgContext(user=user, org_id="org-1", role=models.MembershipRole.MEMBER)
    with pytest.raises(HTTPException) as excinfo:
        check(ctx=member)
    assert excinfo.value.status_code == 403


def test_password_change_validates_and_rehashes(db_session):
    user = _user(db_session)

    with pytest.raises(HTTPException) as mismatch:
        services.change_password(
            db_session,
            user=user,
            payload=schemas.PasswordChange(new_password="another-pass", confirm_password="different"),
        )
    assert mismatch.value.status_code == 400

    services.change_password(
        db_session,
        user=user,
        payload=schemas.PasswordChange(new_password="another-pass", confirm_password="another-pass"),
    )
    assert security.verify_password("another-pass", user.hashed_password)
    assert not security.verify_password("s3cret-pass", user.hashed_password)


def test_duplicate_email_is_conflict(db_session):
    _user(db_session)

    with pytest.raises(HTTPException) as excinfo:
        services.create_user(db_session, email="Ana@Example.com", password="s3cret-pass")
    assert excinfo.value.status_code == 409


def test_only_argon2_hashes_verify():
    hashed = security.get_password_hash("s3cret-pass")

    assert hashed.startswith("$argon2id$")
    assert security.verify_password("s3cret-pass", hashed) is True
    assert security.verify_password("s3cret-pass", "$2b$12$" + "a" * 53) is False
    assert security.verify_password("", hashed) is False

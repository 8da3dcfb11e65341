# backend/stockdb/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- User accounts (login identity, profile, password)
- Organizations (tenants) and memberships
- Public auth endpoints (login, logout, current user)
- Organization bootstrap on first sign-in

Every other app scopes its rows by the organization resolved here.
"""

from . import models  # noqa: F401

__all__ = ["models"]

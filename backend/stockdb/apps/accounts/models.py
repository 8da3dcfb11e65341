# backend/stockdb/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from stockdb.database import Base
from stockdb.utils.identifiers import generate_uuid7


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class MembershipRole(str, enum.Enum):
    """Role of a user inside one organization."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


class User(Base):
    """
    Login identity.

    Users are global; what they can see is decided by their memberships.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=False)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    email_confirmed = Column(Boolean, nullable=False, default=True)

    # Tokens issued before this instant are rejected (sign-out).
    token_revoked_at = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    memberships = relationship(
        "Membership",
        back_populates="user",
        lazy="selectin",
        order_by="Membership.created_at",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"


# ---------------------------------------------------------------------------
# ORGANIZATIONS (TENANTS)
# ---------------------------------------------------------------------------


class Organization(Base):
    """
    Tenant boundary. Every inventory record carries an org_id.
    """

    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    name = Column(String(255), nullable=False)
    slug = Column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        doc="Short slug, e.g. 'inventario-0190a1b2'",
    )
    created_by_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    memberships = relationship(
        "Membership",
        back_populates="organization",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Organization {self.slug} {self.name}>"


class Membership(Base):
    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("org_id", "user_id", name="uq_memberships_org_user"),
        Index("ix_memberships_user", "user_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(
        Enum(MembershipRole, name="membership_role_enum", native_enum=False),
        nullable=False,
        default=MembershipRole.MEMBER,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="memberships", lazy="joined")

    def __repr__(self) -> str:
        return f"<Membership org={self.org_id} user={self.user_id} role={self.role}>"

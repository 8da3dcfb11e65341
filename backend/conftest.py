from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
# Cheap hashes keep the auth tests fast.
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["ARGON2_PARALLELISM"] = "1"

import stockdb  # noqa: E402,F401  registers every app's tables
from stockdb.database import Base  # noqa: E402
from stockdb.apps.accounts import services as account_services  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def owner(db_session):
    """A confirmed user with a bootstrapped organization (owner membership)."""
    user = account_services.create_user(
        db_session,
        email="owner@example.com",
        password="correct-horse",
        full_name="Owner User",
    )
    membership, _ = account_services.bootstrap_org_if_needed(db_session, user=user)
    db_session.commit()
    return membership


@pytest.fixture()
def org_id(owner) -> str:
    return owner.org_id

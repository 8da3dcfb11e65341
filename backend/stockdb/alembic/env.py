# backend/stockdb/alembic/env.py
"""
Alembic environment for the inventory schema.

Run from backend/ (where alembic.ini lives). Online runs reuse the
application's write engine; offline runs render SQL for the URL in
alembic.ini, or DATABASE_WRITE_URL / DATABASE_URL when the ini still
holds the placeholder.
"""

from __future__ import annotations

import os
import sys
from logging.config import fileConfig

from alembic import context

BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# The package import registers every app's tables on Base.metadata.
import stockdb  # noqa: F401, E402
from stockdb.database import Base, write_engine  # noqa: E402

target_metadata = Base.metadata

COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def _offline_url() -> str:
    url = (config.get_main_option("sqlalchemy.url") or "").strip()
    if url and not url.startswith("driver://"):
        return url
    url = (os.getenv("DATABASE_WRITE_URL") or os.getenv("DATABASE_URL") or "").strip()
    if not url:
        raise RuntimeError("Set sqlalchemy.url in alembic.ini or DATABASE_WRITE_URL / DATABASE_URL.")
    return url


def run_migrations_offline() -> None:
    url = _offline_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        render_as_batch=url.startswith("sqlite"),
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    with write_engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            # SQLite cannot ALTER columns in place.
            render_as_batch=connection.dialect.name == "sqlite",
            **COMPARE_OPTIONS,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

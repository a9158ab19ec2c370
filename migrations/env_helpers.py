"""Database URL resolution for Alembic.

Kept apart from env.py so it can be imported in tests without an Alembic
context. The application connects with psycopg2 and accepts either a URL
or a libpq ``key=value`` DSN in DATABASE_URL; Alembic needs a SQLAlchemy URL.
"""

from __future__ import annotations

import os

from psycopg2.extensions import parse_dsn
from sqlalchemy.engine import URL, make_url

DRIVERNAME = "postgresql+psycopg2"


def _fallback_password() -> str | None:
    return os.environ.get("DB_PASSWORD") or None


def libpq_dsn_to_url(dsn: str) -> URL:
    """Convert a libpq DSN to a SQLAlchemy URL.

    A host starting with "/" is a unix socket directory and is passed in the
    query string, as psycopg2 expects.
    """
    params = parse_dsn(dsn)
    host = params.get("host", "localhost")
    password = params.get("password") or _fallback_password()

    if host.startswith("/"):
        return URL.create(
            DRIVERNAME,
            username=params.get("user"),
            password=password,
            database=params.get("dbname"),
            query={"host": host},
        )
    return URL.create(
        DRIVERNAME,
        username=params.get("user"),
        password=password,
        host=host,
        port=int(params.get("port", 5432)),
        database=params.get("dbname"),
    )


def normalize_url(raw: str) -> URL:
    """Parse a URL, forcing the psycopg2 driver and filling in DB_PASSWORD."""
    url = make_url(raw)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername=DRIVERNAME)
    if not url.password:
        password = _fallback_password()
        if password:
            url = url.set(password=password)
    return url


def get_database_url() -> str:
    raw = os.environ.get("DATABASE_URL")
    if not raw:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    url = normalize_url(raw) if "://" in raw else libpq_dsn_to_url(raw)
    return url.render_as_string(hide_password=False)

"""
Database access using SQLAlchemy.

The monitored host is reached through its Postgres instance, which
exposes /proc statistics via the pgcenter schema. We provide:
- an Engine factory bound to a DATABASE_URL
- a check that the stats schema is installed
- a test telling whether a URL points at this very host
"""

from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from netusage.exceptions import SourceUnavailable

LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}


def create_db_engine(database_url: str) -> Engine:
    """Create the Engine used by the remote source."""
    return create_engine(
        database_url,
        future=True,
        echo=False,  # set True if you want to see SQL in the logs
    )


def is_local_url(database_url: Optional[str]) -> bool:
    """
    True when no database is configured or it runs on this host.

    A missing host (unix socket, SQLite) or a host given as a socket
    directory counts as local.
    """
    if not database_url:
        return True
    host = make_url(database_url).host
    return not host or host.startswith("/") or host in LOCAL_HOSTS


def schema_exists(engine: Engine, query: str) -> bool:
    """Run the schema check query and return its boolean result."""
    try:
        with engine.connect() as conn:
            return bool(conn.execute(text(query)).scalar())
    except SQLAlchemyError as exc:
        raise SourceUnavailable(f"schema check failed: {exc}") from exc

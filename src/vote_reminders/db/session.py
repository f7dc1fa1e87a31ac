"""Database engine construction.

Each vote store owns its engine; nothing here holds a module-level connection.
"""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

MEMORY_LOCATION = ":memory:"


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def database_url(location: str) -> str:
    """Translate a storage location into a SQLAlchemy URL.

    Accepts a full URL, a filesystem path, or ``:memory:``.
    """
    if "://" in location:
        return location
    if location in ("", MEMORY_LOCATION):
        return "sqlite://"
    return f"sqlite:///{location}"


def build_engine(location: str, *, echo: bool = False) -> Engine:
    """Create an engine for a store location.

    In-memory databases live inside a single connection, so they are pinned
    with ``StaticPool`` and may be used from the store's worker thread.
    """
    url = database_url(location)
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    return create_engine(url, pool_pre_ping=True, echo=echo)

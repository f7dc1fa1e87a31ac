"""Database configuration and utilities."""

from .session import Base, build_engine, database_url
from .time import utcnow

__all__ = ["Base", "build_engine", "database_url", "utcnow"]

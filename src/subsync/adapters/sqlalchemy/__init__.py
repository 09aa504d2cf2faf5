"""SQLAlchemy adapter package for subsync."""

from __future__ import annotations

from .mappings import UTCDateTime, create_all_tables, metadata, resource_table
from .store import SqlAlchemyResourceStore, build_sqlalchemy_store

__all__ = [
    "SqlAlchemyResourceStore",
    "UTCDateTime",
    "build_sqlalchemy_store",
    "create_all_tables",
    "metadata",
    "resource_table",
]

"""
ops_console.db.base

Shared declarative base for every ORM model (Alembic reads `Base.metadata`).
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass

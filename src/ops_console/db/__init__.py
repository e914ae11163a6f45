"""
ops_console.db

Persistence package (SQLAlchemy async).

Responsibilities:
- ORM models, engine/session setup, repositories and the store adapters that back
  the `access` collaborators.
"""

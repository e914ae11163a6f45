"""
ops_console.access

Framework-independent access-control core.

Responsibilities:
- Session/role snapshot lifecycle (`session`).
- Role-scoped permission resolution with a coalescing cache (`permissions`).
- Guard evaluation over permission/role/skill conditions (`guards`).
- Pure role -> route policy (`redirects`) and fire-and-forget auditing (`audit`).
"""

# Package marker; import from submodules directly.


# --- Module Notes -----------------------------------------------------------
# Nothing in this package imports FastAPI or SQLAlchemy. Collaborators are Protocols
# implemented by `ops_console.db.stores` and adapted to HTTP in `ops_console.api`.

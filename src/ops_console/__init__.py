"""
ops_console

Top-level package for the operations console access layer.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file minimal: importing `ops_console` must not configure logging or touch the DB.

"""
ops_console.db.repositories

Thin data-access repositories; each takes a caller-owned `AsyncSession`.
"""

"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.seen_domain import SeenDomain

__all__ = [
    "SeenDomain",
]

"""
Custom SQLAlchemy types for cross-database compatibility.
"""

from sqlalchemy import TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB as PostgresJSONB
from sqlalchemy.types import JSON


class JSONB(TypeDecorator):
    """
    Cross-database JSONB type.
    Uses native JSONB for PostgreSQL, JSON for SQLite.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PostgresJSONB())
        else:
            return dialect.type_descriptor(JSON())

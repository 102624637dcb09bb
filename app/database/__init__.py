"""
Database package for optional scam pattern persistence.
Contains the pattern table, engine helpers and the pattern repository.
"""

from .connection import create_db_engine, create_session_factory, check_database_health, create_tables, drop_tables
from .models import Base, ScamPatternRecord
from .repository import PatternRepository

__all__ = [
    "create_db_engine",
    "create_session_factory",
    "check_database_health",
    "create_tables",
    "drop_tables",
    "Base",
    "ScamPatternRecord",
    "PatternRepository",
]

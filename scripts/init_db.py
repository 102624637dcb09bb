#!/usr/bin/env python3
"""
Database initialization script.
Creates the scam pattern table at DATABASE_URL.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.core.logging import setup_logging, get_logger
from app.database.connection import create_db_engine, create_tables, check_database_health
from config.settings import settings

logger = get_logger(__name__)


def main() -> bool:
    """Initialize the pattern database."""
    logger.info(f"Connecting to database: {settings.database.url}")
    engine = create_db_engine(settings.database.url, echo=settings.database.echo)

    try:
        if not check_database_health(engine):
            logger.error("Cannot connect to database")
            return False

        create_tables(engine)
        logger.info("Database initialization completed successfully")
        return True
    finally:
        engine.dispose()


if __name__ == "__main__":
    setup_logging()
    sys.exit(0 if main() else 1)

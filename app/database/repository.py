"""
Durable storage of analyzed scam patterns.
"""

from typing import List

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
import logging

from app.core.models import ScamPattern
from app.core.utils import ensure_utc
from app.database.models import ScamPatternRecord

logger = logging.getLogger(__name__)


class PatternRepository:
    """
    Writes patterns through to the database and reads them back in capture order.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def save(self, pattern: ScamPattern) -> None:
        """
        Persist a pattern.

        Raises:
            SQLAlchemyError: If the database operation fails
        """
        with self.session_factory() as db:
            try:
                db.add(ScamPatternRecord(
                    id=pattern.id,
                    category=pattern.category,
                    script=pattern.script,
                    features=[float(value) for value in pattern.features],
                    location=pattern.location,
                    target_profile=pattern.target_profile,
                    risk_score=pattern.risk_score,
                    created_at=pattern.created_at,
                ))
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to persist pattern {pattern.id}: {e}")
                raise

        logger.debug(f"Persisted pattern {pattern.id}")

    def load_recent(self, limit: int = 1000) -> List[ScamPattern]:
        """
        Load the ``limit`` most recent patterns, oldest first.

        Returns:
            List[ScamPattern]: Patterns ready to be appended to a store
        """
        with self.session_factory() as db:
            records = db.execute(
                select(ScamPatternRecord)
                .order_by(ScamPatternRecord.created_at.desc())
                .limit(limit)
            ).scalars().all()

        return [self._to_pattern(record) for record in reversed(records)]

    def count(self) -> int:
        with self.session_factory() as db:
            return db.execute(select(func.count(ScamPatternRecord.id))).scalar_one()

    @staticmethod
    def _to_pattern(record: ScamPatternRecord) -> ScamPattern:
        return ScamPattern(
            id=record.id,
            category=record.category,
            script=record.script,
            features=tuple(float(value) for value in record.features),
            created_at=ensure_utc(record.created_at),
            location=record.location,
            target_profile=record.target_profile,
            risk_score=float(record.risk_score or 0.0),
        )

"""
SQLAlchemy models for optional scam pattern persistence.
"""

from sqlalchemy import (
    Column, String, DateTime, Text, Float, Index, CheckConstraint
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from app.database.types import JSONB

Base = declarative_base()


class ScamPatternRecord(Base):
    """
    Durable copy of an analyzed scam pattern.
    Rows are written once and read back to warm the in-memory store.
    """
    __tablename__ = 'scam_patterns'

    id = Column(String(36), primary_key=True)

    category = Column(String(100), nullable=False)
    script = Column(Text, nullable=False)
    features = Column(JSONB(), nullable=False)  # ordered list of floats

    # Optional context
    location = Column(String(200), nullable=True)
    target_profile = Column(String(200), nullable=True)

    risk_score = Column(Float, default=0.0, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)
    stored_at = Column(DateTime(timezone=True), default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint('LENGTH(script) > 0', name='non_empty_script'),
        CheckConstraint('risk_score >= 0.0', name='non_negative_risk_score'),
        Index('idx_scam_patterns_category', 'category'),
        Index('idx_scam_patterns_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<ScamPatternRecord(id='{self.id}', category='{self.category}')>"

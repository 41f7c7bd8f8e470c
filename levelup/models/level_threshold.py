from sqlalchemy import Column, Integer, String, Float, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from levelup.database import Base


class LevelThreshold(Base):
    __tablename__ = "level_thresholds"
    __table_args__ = (UniqueConstraint("level", "year", name="uq_threshold_level_year"),)

    id = Column(Integer, primary_key=True, index=True)
    level = Column(String, nullable=False)
    year = Column(Integer, index=True, nullable=False)
    required_points = Column(Float, nullable=True)
    required_credits = Column(Float, nullable=True)
    min_tenure_years = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class LevelThresholdHistory(Base):
    """Append-only change log, one row per changed field."""
    __tablename__ = "level_threshold_history"

    id = Column(Integer, primary_key=True, index=True)
    level = Column(String, nullable=False)
    year = Column(Integer, index=True, nullable=False)
    field_name = Column(String, nullable=False)
    old_value = Column(Float, nullable=True)
    new_value = Column(Float, nullable=True)
    changed_by = Column(Integer, nullable=True)
    changed_at = Column(DateTime(timezone=True), server_default=func.now())

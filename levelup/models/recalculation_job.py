from sqlalchemy import Column, Integer, String, DateTime, JSON, Text
from sqlalchemy.sql import func
from levelup.database import Base
import enum


class JobStatus(str, enum.Enum):
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class RecalculationJob(Base):
    __tablename__ = "recalculation_jobs"

    id = Column(Integer, primary_key=True, index=True)
    job_type = Column(String, nullable=False, default="recalculate")
    status = Column(String, default=JobStatus.QUEUED.value, index=True, nullable=False)
    payload = Column(JSON, nullable=True)
    result = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)
    requested_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

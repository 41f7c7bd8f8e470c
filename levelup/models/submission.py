from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from levelup.database import Base


class Submission(Base):
    """Row presence locks (department, year) against department-head edits."""
    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("department", "year", name="uq_submission_department_year"),)

    id = Column(Integer, primary_key=True, index=True)
    department = Column(String, nullable=False)
    year = Column(Integer, index=True, nullable=False)
    submitted_by = Column(Integer, nullable=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

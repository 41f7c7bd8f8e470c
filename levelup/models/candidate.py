from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from levelup.database import Base
import enum


class CandidateSource(str, enum.Enum):
    AUTO = "auto"
    MANUAL = "manual"


class PromotionType(str, enum.Enum):
    NORMAL = "normal"
    SPECIAL = "special"


class Candidate(Base):
    __tablename__ = "candidates"
    __table_args__ = (UniqueConstraint("employee_id", "year", name="uq_candidate_employee_year"),)

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), index=True, nullable=False)
    year = Column(Integer, index=True, nullable=False)
    point_met = Column(Boolean, default=False, nullable=False)
    credit_met = Column(Boolean, default=False, nullable=False)
    is_review_target = Column(Boolean, default=False, nullable=False)
    source = Column(String, default=CandidateSource.AUTO.value, nullable=False)
    promotion_type = Column(String, nullable=True)
    saved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", back_populates="candidates")
    review = relationship("Review", back_populates="candidate", uselist=False, cascade="all, delete-orphan")
    confirmation = relationship("Confirmation", back_populates="candidate", uselist=False, cascade="all, delete-orphan")

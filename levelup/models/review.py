from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from levelup.database import Base
import enum


class ReviewerRole(str, enum.Enum):
    OWN_DEPARTMENT_HEAD = "own-department-head"
    OTHER_DEPARTMENT_HEAD = "other-department-head"
    HR_LEAD = "hr-lead"


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="CASCADE"), unique=True, nullable=False)
    competency_score = Column(Float, nullable=True)
    competency_eval = Column(String, nullable=True)
    # Authoritative decision: True / False / None (unset). Written only by the consensus resolver.
    recommendation = Column(Boolean, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    candidate = relationship("Candidate", back_populates="review")
    opinions = relationship("Opinion", back_populates="review", cascade="all, delete-orphan")


class Opinion(Base):
    __tablename__ = "opinions"
    __table_args__ = (UniqueConstraint("review_id", "reviewer_id", name="uq_opinion_review_reviewer"),)

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), index=True, nullable=False)
    reviewer_id = Column(Integer, nullable=False)
    reviewer_name = Column(String, nullable=True)
    reviewer_role = Column(String, nullable=False)
    opinion_text = Column(Text, nullable=True)
    recommendation = Column(Boolean, nullable=True)
    saved_at = Column(DateTime(timezone=True), nullable=True)
    modified_by = Column(Integer, nullable=True)
    modified_at = Column(DateTime(timezone=True), nullable=True)

    review = relationship("Review", back_populates="opinions")

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from levelup.database import Base
import enum


class BonusPenaltyType(str, enum.Enum):
    BONUS = "bonus"
    PENALTY = "penalty"


class BonusPenalty(Base):
    """
    One ledger line of extra points for an employee and year. ``points`` is
    signed: bonuses are positive, penalties negative. The net sum over all of an
    employee's lines is folded into their latest point cumulative.
    """
    __tablename__ = "bonus_penalties"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), index=True, nullable=False)
    year = Column(Integer, index=True, nullable=False)
    type = Column(String(20), nullable=False)
    category = Column(String(100), nullable=False)
    points = Column(Float, nullable=False)
    note = Column(Text, nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee")

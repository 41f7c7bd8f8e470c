"""
Yearly score records. Point and Credit share their shape; only Point carries
the merit/penalty adjustments, and those live on the most recent year's row.
"""
from sqlalchemy import Column, Integer, Float, Boolean, ForeignKey, UniqueConstraint, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from levelup.database import Base


class Point(Base):
    __tablename__ = "points"
    __table_args__ = (UniqueConstraint("employee_id", "year", name="uq_point_employee_year"),)

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), index=True, nullable=False)
    year = Column(Integer, nullable=False)
    score = Column(Float, default=0.0, nullable=False)
    merit = Column(Float, default=0.0, nullable=False)
    penalty = Column(Float, default=0.0, nullable=False)
    cumulative = Column(Float, default=0.0, nullable=False)
    is_met = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    employee = relationship("Employee", back_populates="points")


class Credit(Base):
    __tablename__ = "credits"
    __table_args__ = (UniqueConstraint("employee_id", "year", name="uq_credit_employee_year"),)

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), index=True, nullable=False)
    year = Column(Integer, nullable=False)
    score = Column(Float, default=0.0, nullable=False)
    cumulative = Column(Float, default=0.0, nullable=False)
    is_met = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    employee = relationship("Employee", back_populates="credits")

from sqlalchemy import Column, Integer, String, Float, UniqueConstraint
from levelup.database import Base


class GradeRule(Base):
    """grade -> points for a single year ("2025") or an inclusive span ("2021-2024")."""
    __tablename__ = "grade_rules"
    __table_args__ = (UniqueConstraint("grade", "year_range", name="uq_grade_rule"),)

    id = Column(Integer, primary_key=True, index=True)
    grade = Column(String, nullable=False)
    year_range = Column(String, nullable=False)
    points = Column(Float, nullable=False)

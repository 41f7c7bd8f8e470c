from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from levelup.database import Base


class PerformanceGrade(Base):
    __tablename__ = "performance_grades"
    __table_args__ = (UniqueConstraint("employee_id", "year", name="uq_grade_employee_year"),)

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), index=True, nullable=False)
    year = Column(Integer, nullable=False)
    grade = Column(String, nullable=False)

    employee = relationship("Employee", back_populates="grades")

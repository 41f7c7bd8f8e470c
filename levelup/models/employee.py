from sqlalchemy import Column, Integer, String, Date, Enum, DateTime, Boolean, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from levelup.database import Base
from levelup.core.permissions import Role


class Employee(Base):
    """
    Employee and reviewer directory.

    Reviewers (department heads, HR) are employees too; the caller identity's
    user id is an ``employees.id``.
    """
    __tablename__ = "employees"
    __table_args__ = (UniqueConstraint("name", "hire_date", name="uq_employee_name_hire_date"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    department = Column(String, index=True, nullable=False, default="")
    team = Column(String, index=True, nullable=False, default="")
    level = Column(String, nullable=True)  # "L0" .. "L5"
    hire_date = Column(Date, nullable=True)
    years_of_service = Column(Integer, default=0, nullable=False)
    competency_level = Column(String, nullable=True)
    role = Column(Enum(Role), default=Role.TEAM_MEMBER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    grades = relationship("PerformanceGrade", back_populates="employee", cascade="all, delete-orphan")
    points = relationship("Point", back_populates="employee", cascade="all, delete-orphan")
    credits = relationship("Credit", back_populates="employee", cascade="all, delete-orphan")
    candidates = relationship("Candidate", back_populates="employee", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Employee {self.name} ({self.department}/{self.level})>"

    @property
    def hire_year(self):
        return self.hire_date.year if self.hire_date else None

from pydantic import BaseModel, Field, field_validator
from datetime import date
from typing import Dict, List, Literal, Optional

from levelup.core.permissions import Role


class EmployeeImportRow(BaseModel):
    department: str
    team: str = ""
    name: str = Field(min_length=1)
    level: Optional[str] = None
    hire_date: Optional[date] = None
    years_of_service: int = Field(default=0, ge=0)
    competency_level: Optional[str] = None
    role: Role = Role.TEAM_MEMBER
    performance_grades: Dict[int, str] = {}
    point_score: Optional[float] = None
    credit_score: Optional[float] = Field(default=None, ge=0)

    @field_validator("performance_grades")
    @classmethod
    def strip_grades(cls, v: Dict[int, str]) -> Dict[int, str]:
        return {year: grade.strip().upper() for year, grade in v.items() if grade and grade.strip()}


class EmployeeImportRequest(BaseModel):
    rows: List[EmployeeImportRow]
    duplicate_policy: Literal["skip", "update"] = "skip"


class EmployeeImportResponse(BaseModel):
    created: int
    updated: int
    skipped: int
    employee_ids: List[int]
    recalculation_job_id: Optional[int] = None

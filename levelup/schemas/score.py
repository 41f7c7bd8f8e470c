from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional


class YearScore(BaseModel):
    year: int
    score: Optional[float] = None


class YearGrade(BaseModel):
    year: int
    grade: str


class PointSaveRequest(BaseModel):
    employee_id: int
    year_scores: List[YearScore] = []
    year_grades: Optional[List[YearGrade]] = None
    # Omitted totals keep the stored merit / penalty
    total_merit: Optional[float] = None
    total_penalty: Optional[float] = None


class CreditSaveRequest(BaseModel):
    employee_id: int
    year_scores: List[YearScore]


class LegacyCreditRequest(BaseModel):
    employee_id: int
    total: float = Field(ge=0)


class SavedScoreRow(BaseModel):
    year: int
    score: float
    cumulative: float
    is_met: bool
    merit: Optional[float] = None
    penalty: Optional[float] = None


class ScoreSaveResponse(BaseModel):
    employee_id: int
    rows: List[SavedScoreRow]
    cumulative: float


class DisplayYear(BaseModel):
    year: int
    score: Optional[float] = None
    auto_fill: bool = False


class ScoreRow(BaseModel):
    employee_id: int
    name: str
    department: str
    team: str
    level: Optional[str] = None
    years_of_service: int
    hire_date: Optional[date] = None
    years: List[DisplayYear]
    cumulative: float
    required: Optional[float] = None
    is_met: bool
    merit: Optional[float] = None
    penalty: Optional[float] = None
    bonus_total: Optional[float] = None
    penalty_total: Optional[float] = None


class ScoreListResponse(BaseModel):
    rows: List[ScoreRow]
    total: int
    meta: dict
    recalculation_job_id: Optional[int] = None

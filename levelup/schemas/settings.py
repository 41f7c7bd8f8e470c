from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional


class ThresholdEntry(BaseModel):
    level: str
    required_points: Optional[float] = None
    required_credits: Optional[float] = None
    min_tenure_years: Optional[int] = Field(default=None, ge=0)


class ThresholdSaveRequest(BaseModel):
    year: int
    thresholds: List[ThresholdEntry]


class ThresholdResponse(BaseModel):
    level: str
    year: int
    required_points: Optional[float] = None
    required_credits: Optional[float] = None
    min_tenure_years: int

    model_config = ConfigDict(from_attributes=True)


class ThresholdListResponse(BaseModel):
    year: int
    effective_year: Optional[int] = None
    thresholds: List[ThresholdResponse]


class ThresholdHistoryResponse(BaseModel):
    id: int
    level: str
    year: int
    field_name: str
    old_value: Optional[float] = None
    new_value: Optional[float] = None
    changed_by: Optional[int] = None
    changed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class GradeRuleEntry(BaseModel):
    grade: str = Field(min_length=1)
    year_range: str = Field(min_length=4)
    points: float


class GradeRuleResponse(GradeRuleEntry):
    id: int

    model_config = ConfigDict(from_attributes=True)


class GradeRuleSaveRequest(BaseModel):
    rules: List[GradeRuleEntry]


class ThresholdSaveResponse(BaseModel):
    year: int
    changed_fields: int
    recalculation_job_id: Optional[int] = None


class GradeRuleSaveResponse(BaseModel):
    count: int
    recalculation_job_id: Optional[int] = None

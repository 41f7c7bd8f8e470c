from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from typing import Dict, List, Optional

from levelup.services.eligibility import MeetMode


class AutoSelectRequest(BaseModel):
    year: int
    policy: Optional[MeetMode] = None


class AutoSelectResponse(BaseModel):
    added: int
    total: int


class CandidateCreate(BaseModel):
    employee_id: int
    year: int


class CandidateUpdate(BaseModel):
    is_review_target: bool


class CandidateResponse(BaseModel):
    id: int
    employee_id: int
    year: int
    point_met: bool
    credit_met: bool
    is_review_target: bool
    source: str
    promotion_type: Optional[str] = None
    saved_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RosterRow(BaseModel):
    candidate_id: Optional[int] = None
    employee_id: int
    name: str
    department: str
    team: str
    level: Optional[str] = None
    years_of_service: int
    hire_date: Optional[date] = None
    point_cumulative: float
    credit_cumulative: float
    required_points: Optional[float] = None
    required_credits: Optional[float] = None
    point_met: bool
    credit_met: bool
    is_review_target: bool
    source: str
    promotion_type: Optional[str] = None
    grades: Dict[int, Optional[str]]


class RosterResponse(BaseModel):
    rows: List[RosterRow]
    total: int
    meta: dict

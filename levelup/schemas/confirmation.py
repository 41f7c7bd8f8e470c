from pydantic import BaseModel
from datetime import date, datetime
from typing import Dict, List, Optional

from levelup.models.confirmation import ConfirmationStatus


class ConfirmationUpdate(BaseModel):
    status: ConfirmationStatus
    override: bool = False


class ConfirmationUpdateResponse(BaseModel):
    candidate_id: int
    confirmation_id: int
    status: ConfirmationStatus
    confirmed_at: Optional[datetime] = None


class ConfirmationRow(BaseModel):
    candidate_id: int
    employee_id: int
    name: str
    department: str
    team: str
    level: Optional[str] = None
    competency_level: Optional[str] = None
    years_of_service: int
    hire_date: Optional[date] = None
    promotion_type: Optional[str] = None
    point_cumulative: float
    credit_cumulative: float
    required_points: Optional[float] = None
    required_credits: Optional[float] = None
    competency_score: Optional[float] = None
    competency_eval: Optional[str] = None
    review_recommendation: Optional[bool] = None
    status: ConfirmationStatus
    confirmed_at: Optional[datetime] = None
    is_submitted: bool
    grades: Dict[int, Optional[str]]


class ConfirmationSummary(BaseModel):
    pending: int
    confirmed: int
    deferred: int


class ConfirmationListResponse(BaseModel):
    rows: List[ConfirmationRow]
    total: int
    summary: ConfirmationSummary
    unfiltered: bool
    year: int

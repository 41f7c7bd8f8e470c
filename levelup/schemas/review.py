from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import List, Optional


class OpinionSaveRequest(BaseModel):
    opinion_text: Optional[str] = None
    recommendation: Optional[bool] = None
    on_behalf_of: Optional[int] = Field(default=None, description="Reviewer id; administrators only")


class OpinionSaveResponse(BaseModel):
    opinion_id: int
    reviewer_id: int
    reviewer_role: str
    reviewer_name: str
    recommendation: Optional[bool] = None
    saved_at: Optional[datetime] = None
    review_recommendation: Optional[bool] = None
    review_updated: bool

    model_config = ConfigDict(from_attributes=True)


class OpinionResponse(BaseModel):
    id: int
    reviewer_id: int
    reviewer_name: Optional[str] = None
    reviewer_role: str
    opinion_text: Optional[str] = None
    recommendation: Optional[bool] = None
    saved_at: Optional[datetime] = None
    modified_by: Optional[int] = None
    modified_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewResponse(BaseModel):
    id: int
    candidate_id: int
    competency_score: Optional[float] = None
    competency_eval: Optional[str] = None
    recommendation: Optional[bool] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewUpdate(BaseModel):
    competency_score: Optional[float] = None
    competency_eval: Optional[str] = None


class ReviewEmployee(BaseModel):
    id: int
    name: str
    department: str
    team: str
    level: Optional[str] = None
    competency_level: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewDetailResponse(BaseModel):
    review: ReviewResponse
    candidate_id: int
    year: int
    employee: ReviewEmployee
    point_cumulative: float
    credit_cumulative: float
    required_points: Optional[float] = None
    required_credits: Optional[float] = None
    is_locked: bool
    opinions: List[OpinionResponse]


class ReviewRow(BaseModel):
    review_id: Optional[int] = None
    candidate_id: int
    employee_id: int
    name: str
    department: str
    team: str
    level: Optional[str] = None
    competency_level: Optional[str] = None
    promotion_type: Optional[str] = None
    point_cumulative: float
    credit_cumulative: float
    competency_score: Optional[float] = None
    competency_eval: Optional[str] = None
    recommendation: Optional[bool] = None
    my_opinion_saved_at: Optional[datetime] = None
    is_locked: bool


class ReviewListResponse(BaseModel):
    rows: List[ReviewRow]
    total: int
    year: int


class SubmissionRequest(BaseModel):
    year: int
    department: Optional[str] = Field(default=None, description="Administrators only")


class SubmittedDepartment(BaseModel):
    department: str
    submitted_at: Optional[datetime] = None
    submitted_by: Optional[int] = None


class SubmissionStatusResponse(BaseModel):
    year: int
    is_submitted: bool
    submitted_departments: List[SubmittedDepartment]


class SubmissionStats(BaseModel):
    total: int
    recommended: int
    not_recommended: int


class SubmissionResponse(BaseModel):
    department: str
    year: int
    submitted_at: Optional[datetime] = None
    removed: Optional[bool] = None
    stats: Optional[SubmissionStats] = None
    notified: Optional[int] = None

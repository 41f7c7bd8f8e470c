from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session, sessionmaker
from typing import Literal, Optional

from levelup.core.permissions import Capability, Operation
from levelup.database import get_db, get_session_factory
from levelup.dependencies import require_capability
from levelup.repositories.grade_rules import GradeRuleRepository
from levelup.schemas.score import (
    CreditSaveRequest,
    LegacyCreditRequest,
    PointSaveRequest,
    ScoreListResponse,
    ScoreSaveResponse,
)
from levelup.services.score_service import CREDIT, POINT, ScoreService
from levelup.services.task_service import JobService

router = APIRouter(tags=["Scores"])


@router.get("/points", response_model=ScoreListResponse)
def list_points(
    background_tasks: BackgroundTasks,
    department: Optional[str] = None,
    team: Optional[str] = None,
    keyword: Optional[str] = None,
    met: Optional[Literal["Y", "N"]] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    capability: Capability = Depends(require_capability(Operation.MANAGE_SCORES)),
):
    """Point display rows. Queues a background recalculation when none is pending."""
    job_id = None
    if GradeRuleRepository(db).exists():
        jobs = JobService(db, background_tasks, session_factory)
        if not jobs.has_active():
            job_id = jobs.enqueue("recalculate", {}, capability).id
    result = ScoreService(db).list_scores(
        POINT, department=department, team=team, keyword=keyword, met=met, page=page, page_size=page_size,
    )
    result["recalculation_job_id"] = job_id
    return result


@router.post("/points", response_model=ScoreSaveResponse)
def save_points(
    body: PointSaveRequest,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.MANAGE_SCORES)),
):
    return ScoreService(db).save_points(
        capability,
        body.employee_id,
        [s.model_dump() for s in body.year_scores],
        year_grades=[g.model_dump() for g in body.year_grades] if body.year_grades else None,
        total_merit=body.total_merit,
        total_penalty=body.total_penalty,
    )


@router.delete("/points", status_code=status.HTTP_204_NO_CONTENT)
def delete_point(
    employee_id: int,
    year: int,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.DELETE_SCORES)),
):
    ScoreService(db).delete_score(capability, POINT, employee_id, year)


@router.get("/credits", response_model=ScoreListResponse)
def list_credits(
    department: Optional[str] = None,
    team: Optional[str] = None,
    keyword: Optional[str] = None,
    met: Optional[Literal["Y", "N"]] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.MANAGE_SCORES)),
):
    return ScoreService(db).list_scores(
        CREDIT, department=department, team=team, keyword=keyword, met=met, page=page, page_size=page_size,
    )


@router.post("/credits", response_model=ScoreSaveResponse)
def save_credits(
    body: CreditSaveRequest,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.MANAGE_SCORES)),
):
    return ScoreService(db).save_credits(capability, body.employee_id, [s.model_dump() for s in body.year_scores])


@router.post("/credits/legacy-total", response_model=ScoreSaveResponse)
def seed_legacy_credits(
    body: LegacyCreditRequest,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.MANAGE_SCORES)),
):
    return ScoreService(db).seed_legacy_credits(capability, body.employee_id, body.total)


@router.delete("/credits", status_code=status.HTTP_204_NO_CONTENT)
def delete_credit(
    employee_id: int,
    year: int,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.DELETE_SCORES)),
):
    ScoreService(db).delete_score(capability, CREDIT, employee_id, year)

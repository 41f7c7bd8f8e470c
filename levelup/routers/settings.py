from datetime import date
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session, sessionmaker
from typing import List, Optional

from levelup.core.permissions import Capability, Operation
from levelup.database import get_db, get_session_factory
from levelup.dependencies import require_capability
from levelup.schemas.settings import (
    GradeRuleResponse,
    GradeRuleSaveRequest,
    GradeRuleSaveResponse,
    ThresholdHistoryResponse,
    ThresholdListResponse,
    ThresholdSaveRequest,
    ThresholdSaveResponse,
)
from levelup.services.settings_service import SettingsService
from levelup.services.task_service import JobService

router = APIRouter(prefix="/settings", tags=["Settings"])


def _queue_recalculation(db: Session, background_tasks: BackgroundTasks, session_factory: sessionmaker,
                         capability: Capability, year: int) -> int:
    job = JobService(db, background_tasks, session_factory).enqueue(
        "recalculate", {"auto_select_year": year}, capability,
    )
    return job.id


@router.get("/thresholds", response_model=ThresholdListResponse)
def get_thresholds(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.VIEW_SETTINGS)),
):
    return SettingsService(db).get_thresholds(year or date.today().year)


@router.put("/thresholds", response_model=ThresholdSaveResponse)
def save_thresholds(
    body: ThresholdSaveRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    capability: Capability = Depends(require_capability(Operation.MANAGE_SETTINGS)),
):
    result = SettingsService(db).save_thresholds(
        capability, body.year, [t.model_dump(exclude_unset=True) for t in body.thresholds],
    )
    result["recalculation_job_id"] = _queue_recalculation(db, background_tasks, session_factory, capability, body.year)
    return result


@router.get("/history", response_model=List[ThresholdHistoryResponse])
def get_threshold_history(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.VIEW_SETTINGS)),
):
    return SettingsService(db).history(year)


@router.get("/grade-rules", response_model=List[GradeRuleResponse])
def get_grade_rules(
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.VIEW_SETTINGS)),
):
    return SettingsService(db).get_grade_rules()


@router.put("/grade-rules", response_model=GradeRuleSaveResponse)
def save_grade_rules(
    body: GradeRuleSaveRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    capability: Capability = Depends(require_capability(Operation.MANAGE_SETTINGS)),
):
    result = SettingsService(db).save_grade_rules(capability, [r.model_dump() for r in body.rules])
    result["recalculation_job_id"] = _queue_recalculation(
        db, background_tasks, session_factory, capability, date.today().year,
    )
    return result

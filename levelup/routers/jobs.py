from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session, sessionmaker

from levelup.core.limiter import BULK_LIMIT, limiter
from levelup.core.permissions import Capability, Operation
from levelup.database import get_db, get_session_factory
from levelup.dependencies import require_capability
from levelup.schemas.job import JobResponse, RecalculateRequest
from levelup.services.task_service import JobService

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.post("/recalculate", response_model=JobResponse, status_code=status.HTTP_202_ACCEPTED)
@limiter.limit(BULK_LIMIT)
def recalculate(
    request: Request,
    body: RecalculateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    capability: Capability = Depends(require_capability(Operation.RUN_JOBS)),
):
    """Queue a recalculation. Poll ``GET /jobs/{id}`` for the outcome."""
    return JobService(db, background_tasks, session_factory).enqueue(
        "recalculate", body.model_dump(exclude_none=True), capability,
    )


@router.get("/{job_id}", response_model=JobResponse)
def get_job(
    job_id: int,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.RUN_JOBS)),
):
    return JobService(db).get(job_id)

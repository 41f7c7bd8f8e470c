from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from levelup.core.limiter import BULK_LIMIT, limiter
from levelup.core.permissions import Capability, Operation
from levelup.database import get_db, get_session_factory
from levelup.dependencies import require_capability
from levelup.schemas.employee import EmployeeImportRequest, EmployeeImportResponse
from levelup.services.employee_service import EmployeeImportService
from levelup.services.task_service import JobService

router = APIRouter(prefix="/employees", tags=["Employees"])


@router.post("/import", response_model=EmployeeImportResponse)
@limiter.limit(BULK_LIMIT)
def import_employees(
    request: Request,
    body: EmployeeImportRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    capability: Capability = Depends(require_capability(Operation.IMPORT_EMPLOYEES)),
):
    """
    Upsert employees with their grades and seed scores, then hand the
    touched employees to a background recalculation.
    """
    result = EmployeeImportService(db).import_rows(capability, body.rows, body.duplicate_policy)
    result["recalculation_job_id"] = None
    if result["employee_ids"]:
        job = JobService(db, background_tasks, session_factory).enqueue(
            "recalculate", {"employee_ids": result["employee_ids"]}, capability,
        )
        result["recalculation_job_id"] = job.id
    return result

"""
Tracked background jobs.

A job row is committed as ``queued`` before the triggering request returns;
execution happens in a FastAPI background task with its own session and moves
the row to ``running`` then ``done`` or ``failed``. Failures are logged and
stored on the job, never raised into the request that queued it, and are not
retried automatically.
"""
import logging
import traceback
from typing import Any, Callable, Dict, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session, sessionmaker

from levelup.core.exceptions import NotFoundError
from levelup.core.logging import log_context
from levelup.core.permissions import Capability
from levelup.models.recalculation_job import JobStatus, RecalculationJob
from levelup.services.base import BaseService
from levelup.services.candidate_service import CandidateService
from levelup.services.recalculation import RecalculationService

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (JobStatus.QUEUED.value, JobStatus.RUNNING.value)


def run_recalculation(db: Session, payload: Dict[str, Any]) -> Dict[str, Any]:
    result = RecalculationService(db).recalculate(
        employee_ids=payload.get("employee_ids"),
        year=payload.get("auto_select_year"),
    )
    year = payload.get("auto_select_year")
    if year:
        result["auto_select"] = CandidateService(db).auto_select(int(year))
    return result


# Registry of job handlers
JOB_HANDLERS: Dict[str, Callable[[Session, Dict[str, Any]], Dict[str, Any]]] = {
    "recalculate": run_recalculation,
}


def process_job(db: Session, job_id: int) -> Optional[RecalculationJob]:
    """Execute a queued job to completion on ``db``."""
    job = db.query(RecalculationJob).filter(RecalculationJob.id == job_id).first()
    if not job:
        logger.error(f"Job {job_id} not found during processing.")
        return None

    # Another worker already picked it up
    if job.status != JobStatus.QUEUED.value:
        return job

    job.status = JobStatus.RUNNING.value
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    handler = JOB_HANDLERS.get(job.job_type)
    with log_context(job_id=job_id):
        try:
            if handler is None:
                raise ValueError(f"No handler for job type {job.job_type}")
            logger.info(f"Processing Job {job.id} [{job.job_type}]")
            result = handler(db, job.payload or {})
            job.status = JobStatus.DONE.value
            job.result = result
            job.error = None
            logger.info(f"Job {job.id} completed")
        except Exception as e:
            db.rollback()
            logger.error(f"Job {job_id} failed: {e}")
            logger.error(traceback.format_exc())
            job = db.query(RecalculationJob).filter(RecalculationJob.id == job_id).first()
            job.status = JobStatus.FAILED.value
            job.error = str(e)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    return job


class JobService(BaseService):
    def __init__(self, db: Session, background_tasks: Optional[BackgroundTasks] = None,
                 session_factory: Optional[sessionmaker] = None):
        super().__init__(db)
        self.background_tasks = background_tasks
        self.session_factory = session_factory

    def has_active(self, job_type: str = "recalculate") -> bool:
        return self.db.query(RecalculationJob.id).filter(
            RecalculationJob.job_type == job_type,
            RecalculationJob.status.in_(ACTIVE_STATUSES),
        ).first() is not None

    def enqueue(self, job_type: str, payload: Dict[str, Any],
                capability: Optional[Capability] = None) -> RecalculationJob:
        if job_type not in JOB_HANDLERS:
            raise ValueError(f"Unknown job type: {job_type}")

        job = RecalculationJob(
            job_type=job_type,
            status=JobStatus.QUEUED.value,
            payload=payload,
            requested_by=capability.user_id if capability else None,
        )
        self.db.add(job)
        try:
            self.db.commit()
            self.db.refresh(job)
        except Exception:
            self.db.rollback()
            raise

        self.log_info(f"Enqueued Job {job.id} [{job_type}]")
        if self.background_tasks is not None and self.session_factory is not None:
            self.background_tasks.add_task(self.process_job_wrapper, job.id)
        return job

    def process_job_wrapper(self, job_id: int) -> None:
        # The request session is closed by the time background tasks run.
        db = self.session_factory()
        try:
            process_job(db, job_id)
        except Exception as e:
            logger.error(f"Critical error in job wrapper for {job_id}: {e}", exc_info=True)
        finally:
            db.close()

    def get(self, job_id: int) -> RecalculationJob:
        # Workers update jobs from their own session.
        job = self.db.query(RecalculationJob).filter(RecalculationJob.id == job_id).populate_existing().first()
        if job is None:
            raise NotFoundError("Job", job_id)
        return job

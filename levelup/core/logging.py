"""
JSON logging with per-request and per-job context.

Every line carries the correlation id of the request that produced it, the
caller as ``role:user_id`` and, inside a background job, the job id. Values
passed through ``extra=`` win over the context ones.
"""
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
actor_var: ContextVar[str] = ContextVar("actor", default="")
job_id_var: ContextVar[Optional[int]] = ContextVar("job_id", default=None)

LOG_FORMAT = "%(timestamp) %(level) %(name) %(message)"


def format_actor(role: Optional[str], user_id: Optional[str]) -> str:
    if not role or not user_id:
        return ""
    return f"{role.strip().lower()}:{user_id.strip()}"


@contextmanager
def log_context(actor: Optional[str] = None, job_id: Optional[int] = None):
    """Bind ``actor`` and ``job_id`` to every record logged inside the block."""
    tokens = []
    if actor is not None:
        tokens.append((actor_var, actor_var.set(actor)))
    if job_id is not None:
        tokens.append((job_id_var, job_id_var.set(job_id)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)

        req_id = request_id_var.get()
        if req_id:
            log_record["request_id"] = req_id
        actor = actor_var.get()
        if actor:
            log_record.setdefault("actor", actor)
        job_id = job_id_var.get()
        if job_id is not None:
            log_record.setdefault("job_id", job_id)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        if log_record.get("level"):
            log_record["level"] = log_record["level"].upper()
        else:
            log_record["level"] = record.levelname


def setup_logging(level: int = logging.INFO):
    logger = logging.getLogger()
    # Idempotent: the app module and the test suite may both call this.
    if any(isinstance(h.formatter, CustomJsonFormatter) for h in logger.handlers):
        return
    log_handler = logging.StreamHandler()
    log_handler.setFormatter(CustomJsonFormatter(LOG_FORMAT))
    logger.addHandler(log_handler)
    logger.setLevel(level)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

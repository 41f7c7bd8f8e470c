import logging
from contextlib import contextmanager

from sqlalchemy.orm import Session


class BaseService:
    """
    Shared plumbing for domain services: the session, a module logger and an
    explicit commit/rollback boundary.
    """

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(self.__class__.__module__)

    @contextmanager
    def transaction(self):
        try:
            yield self.db
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def log_info(self, message: str, **extra):
        self._logger.info(message, extra=extra or None)

    def log_warning(self, message: str, **extra):
        self._logger.warning(message, extra=extra or None)

    def log_error(self, message: str, **extra):
        self._logger.error(message, extra=extra or None)

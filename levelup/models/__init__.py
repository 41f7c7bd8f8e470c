# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    employee, performance_grade, score, grade_rule, level_threshold,
    candidate, review, submission, confirmation,
    recalculation_job, audit_log, bonus_penalty, notification
)

# Explicit class exports for cleaner imports
from .employee import Employee
from .performance_grade import PerformanceGrade
from .score import Point, Credit
from .grade_rule import GradeRule
from .level_threshold import LevelThreshold, LevelThresholdHistory
from .candidate import Candidate, CandidateSource, PromotionType
from .review import Review, Opinion, ReviewerRole
from .submission import Submission
from .confirmation import Confirmation, ConfirmationStatus
from .recalculation_job import RecalculationJob, JobStatus
from .audit_log import AuditLog
from .bonus_penalty import BonusPenalty, BonusPenaltyType
from .notification import Notification

__all__ = [
    "Employee",
    "PerformanceGrade",
    "Point",
    "Credit",
    "GradeRule",
    "LevelThreshold",
    "LevelThresholdHistory",
    "Candidate",
    "CandidateSource",
    "PromotionType",
    "Review",
    "Opinion",
    "ReviewerRole",
    "Submission",
    "Confirmation",
    "ConfirmationStatus",
    "RecalculationJob",
    "JobStatus",
    "AuditLog",
    "BonusPenalty",
    "BonusPenaltyType",
    "Notification",
]

from typing import Any, Dict, Optional


class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not resolve caller identity"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )


class AccessDeniedError(AppException):
    """Custom permission error. Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )


class NotFoundError(AppException):
    def __init__(self, entity: str, key: Any):
        super().__init__(
            message=f"{entity} {key} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "key": key}
        )


class ValidationFailedError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details
        )


class SubmissionLockedError(AppException):
    def __init__(self, department: str, year: int):
        super().__init__(
            message=f"Review for {department} ({year}) has been submitted and is locked",
            status_code=423,
            error_code="SUBMISSION_LOCKED",
            details={"department": department, "year": year}
        )


class SubmissionRequiredError(AppException):
    def __init__(self, department: str, year: int):
        super().__init__(
            message=f"{department} has not submitted its {year} review yet",
            status_code=409,
            error_code="SUBMISSION_REQUIRED",
            details={"department": department, "year": year}
        )

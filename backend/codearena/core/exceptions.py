"""Custom exception classes for the application"""

from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Base authentication error"""
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


# Authorization Errors
class AuthorizationError(BaseAPIException):
    """Insufficient permissions"""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", status_code=404)


class ResourceAlreadyExistsError(BaseAPIException):
    """Resource already exists"""
    def __init__(self, resource: str):
        super().__init__(f"{resource} already exists", status_code=409)


# Validation Errors
class ValidationError(BaseAPIException):
    """Validation error"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)


class InvalidStatusTransitionError(ValidationError):
    """Requested contest status is unknown or moves the contest backwards"""
    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot change contest status from {current} to {requested}",
            details={"current_status": current, "requested_status": requested}
        )


# Business Logic Errors
class BusinessLogicError(BaseAPIException):
    """Business logic error"""
    def __init__(self, message: str, status_code: int = 400, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=status_code, details=details)


class ContestNotOpenError(BusinessLogicError):
    """Contest does not accept joins in its current status"""
    def __init__(self, status: str):
        super().__init__(
            "Contest is not open for joining",
            details={"status": status}
        )


class ContestNotLiveError(BusinessLogicError):
    """Contest does not accept submissions in its current status"""
    def __init__(self, status: str):
        super().__init__(
            "Contest is not live",
            details={"status": status}
        )


class InvalidInviteCodeError(BusinessLogicError):
    """Private contest invite code mismatch"""
    def __init__(self):
        super().__init__("Invalid invite code", status_code=403)


class AlreadyJoinedError(BusinessLogicError):
    """Player already holds a participant record for the contest"""
    def __init__(self, contest_id: int):
        super().__init__(
            "Already joined this contest",
            status_code=409,
            details={"contest_id": contest_id}
        )


class NotParticipantError(BusinessLogicError):
    """Player has not joined the contest"""
    def __init__(self, contest_id: int):
        super().__init__(
            "Join the contest first",
            status_code=403,
            details={"contest_id": contest_id}
        )


class SubmissionAlreadyJudgedError(BusinessLogicError):
    """Judge result arrived for a submission that already has a verdict"""
    def __init__(self, submission_id: int, verdict: str):
        super().__init__(
            f"Submission {submission_id} already judged",
            status_code=409,
            details={"verdict": verdict}
        )


# System Errors
class DatabaseError(BaseAPIException):
    """Database operation failed"""
    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, status_code=500)


class ConcurrentModificationError(BaseAPIException):
    """Concurrent modification detected"""
    def __init__(self, message: str = "Resource was modified by another request"):
        super().__init__(message, status_code=409)


# Programming errors. Not API exceptions: they reach the generic 500 handler.
class ScoringInvariantError(RuntimeError):
    """Scoring received input that upstream validation should have rejected"""

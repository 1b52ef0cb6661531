"""
Domain Exceptions

Errors that carry an HTTP status and a machine-readable code. Exception
handlers in the API layer turn them into JSON error bodies.
"""
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError


class CivicStackError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailed(CivicStackError):
    status_code = 400
    code = "INVALID_REQUEST"


class NotFoundError(CivicStackError):
    status_code = 404
    code = "NOT_FOUND"


class ComplaintNotFound(NotFoundError):
    code = "COMPLAINT_NOT_FOUND"

    def __init__(self, complaint_id: str):
        super().__init__(f"Complaint {complaint_id} not found")
        self.complaint_id = complaint_id


class WorkflowNotFound(NotFoundError):
    code = "WORKFLOW_NOT_FOUND"


class PersistenceError(CivicStackError):
    """
    Database write failure.

    Integrity violations are the caller's fault (400); anything else is ours (500).
    The driver message is passed through in details.
    """

    status_code = 500
    code = "PERSISTENCE_ERROR"

    @classmethod
    def from_exception(cls, message: str, exc: Exception) -> "PersistenceError":
        if isinstance(exc, IntegrityError):
            return cls(message, code="CONSTRAINT_VIOLATION", status_code=400, details=str(exc.orig))
        return cls(message, details=str(exc))


class CollaboratorError(Exception):
    """
    External collaborator (sentiment, facilities, vision) failed.

    Never surfaced to API callers; analyzers degrade instead.
    """

    def __init__(self, collaborator: str, message: str):
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator
        self.message = message

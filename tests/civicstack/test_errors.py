"""
Tests for domain error bodies.
"""
from sqlalchemy.exc import IntegrityError, OperationalError

from src.civicstack.errors import ComplaintNotFound, PersistenceError, ValidationFailed


def test_error_body():
    """Error bodies carry success, message and code."""
    error = ValidationFailed("Title is required", code="MISSING_REQUIRED_FIELDS")

    assert error.status_code == 400
    assert error.to_dict() == {"success": False, "error": "Title is required", "code": "MISSING_REQUIRED_FIELDS"}


def test_complaint_not_found():
    """Not-found errors name the complaint."""
    error = ComplaintNotFound("abc")

    assert error.status_code == 404
    assert error.to_dict()["code"] == "COMPLAINT_NOT_FOUND"
    assert error.message == "Complaint abc not found"


def test_integrity_error_is_a_client_error():
    """Constraint violations are the caller's fault."""
    cause = IntegrityError("INSERT INTO complaint_votes", {}, Exception("UNIQUE constraint failed"))

    error = PersistenceError.from_exception("Failed to save complaint", cause)

    assert (error.status_code, error.code) == (400, "CONSTRAINT_VIOLATION")
    assert error.to_dict()["details"] == "UNIQUE constraint failed"


def test_other_database_errors_are_server_errors():
    """Other driver errors are 500s."""
    cause = OperationalError("SELECT 1", {}, Exception("database is locked"))

    error = PersistenceError.from_exception("Failed to update priority", cause)

    assert (error.status_code, error.code) == (500, "PERSISTENCE_ERROR")
    assert "database is locked" in error.details

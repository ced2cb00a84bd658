# smis/core/exceptions.py
"""Custom exceptions for the SMIS application."""
from fastapi import HTTPException
from typing import Any, Dict, List, Optional


class SMISException(HTTPException):
    """Base exception for SMIS application."""
    def __init__(
        self,
        status_code: int,
        detail: Any,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundError(SMISException):
    """Exception raised when a record does not exist."""
    def __init__(self, resource: str = "Resource", message: Optional[str] = None):
        super().__init__(
            status_code=404,
            detail=message or f"{resource} not found"
        )


class ValidationError(SMISException):
    """Exception raised for request data the handlers reject."""
    def __init__(self, message: str, field: Optional[str] = None, errors: Optional[List[Any]] = None):
        detail: Dict[str, Any] = {"error": "Validation Error", "message": message}
        if field:
            detail["field"] = field
        if errors:
            detail["errors"] = errors
        super().__init__(status_code=400, detail=detail)


class AuthenticationError(SMISException):
    """Exception raised when credentials are missing or invalid."""
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            status_code=401,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"}
        )


class PermissionDeniedError(SMISException):
    """Exception raised when the caller's role does not allow the action."""
    def __init__(self, message: str = "Access denied"):
        super().__init__(status_code=403, detail=message)


class DuplicateError(SMISException):
    """Exception raised when a unique field is already taken."""
    def __init__(self, field: str, value: Any, message: Optional[str] = None):
        super().__init__(
            status_code=409,
            detail={
                "error": f"Duplicate {field}",
                "message": message or f"A record with this {field} already exists",
                "field": field,
                "value": value
            }
        )


class ConflictError(SMISException):
    """Exception raised when a write collides with existing state."""
    def __init__(self, message: str, conflicts: Optional[List[Any]] = None):
        detail: Dict[str, Any] = {"error": "Conflict", "message": message}
        if conflicts:
            detail["conflicts"] = conflicts
        super().__init__(status_code=409, detail=detail)


"""Application errors.

Route handlers and services raise these; ``studly.api.handlers`` turns them
into the JSON envelope with the matching status code.
"""
from typing import Dict, List, Optional


class StudlyError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(StudlyError):
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors=[{"field": field, "message": message}])


class MissingReferenceError(StudlyError):
    """A foreign key in the payload points to a row that does not exist."""

    status_code = 400

    def __init__(self, field: str, entity_id: int) -> None:
        super().__init__(f"Referenced entity does not exist: {field}={entity_id}")
        self.field = field
        self.entity_id = entity_id


class ConflictError(StudlyError):
    status_code = 400


class NotFoundError(StudlyError):
    status_code = 404


class AuthError(StudlyError):
    status_code = 401


class PermissionDeniedError(StudlyError):
    status_code = 403


class InternalError(StudlyError):
    status_code = 500

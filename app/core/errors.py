"""
Typed errors raised by the access-control and audit services.

Each error carries the HTTP status the API layer answers with and a message
that is safe to show to the end user.
"""

from typing import Optional


class AccessControlError(Exception):
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(AccessControlError):
    status_code = 404
    default_message = "Resource not found"

    def __init__(self, entity: str, identifier: Optional[str] = None):
        self.entity = entity
        self.identifier = identifier
        message = f"{entity} not found" if identifier is None else f"{entity} '{identifier}' not found"
        super().__init__(message)


class ValidationError(AccessControlError):
    status_code = 422
    default_message = "Invalid input"


class ConflictError(AccessControlError):
    status_code = 409
    default_message = "Resource already exists"


class StoreError(AccessControlError):
    """Failure reported by the backing store, wrapped with the operation that hit it."""

    status_code = 503
    default_message = "The service is temporarily unavailable, please try again"

    def __init__(self, context: str, code: Optional[str] = None, detail: Optional[str] = None):
        self.context = context
        self.code = code
        self.detail = detail
        super().__init__(self.default_message)

    def __str__(self) -> str:
        text = f"{self.context} failed"
        if self.code:
            text += f" [{self.code}]"
        if self.detail:
            text += f": {self.detail}"
        return text

from __future__ import annotations

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base for errors that map to a fixed HTTP status and JSON body."""

    status_code = 500
    payload_key = "message"
    default_message = "Something went wrong!"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def payload(self) -> Dict[str, Any]:
        return {self.payload_key: self.message}


class InvalidRequestError(ServiceError):
    status_code = 400
    payload_key = "error"
    default_message = "Make sure all fields are provided"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ServiceError):
    status_code = 409
    default_message = "Conflict"


class DependencyError(ServiceError):
    """An external service (storage, email, database, sheet) failed."""

    status_code = 500

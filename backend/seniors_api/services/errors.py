"""
Service-level failures. Each variant knows the HTTP status it maps to.
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for failures raised by the service layer."""
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"msg": self.message, "code": self.status_code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationFailed(ServiceError):
    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class ConfigurationError(ServiceError):
    status_code = 500

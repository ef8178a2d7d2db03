"""Exception hierarchy for r2r-research."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorType(str, Enum):
    """Error classification types."""

    CONFIGURATION = "configuration"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    BACKEND = "backend"
    INVALID_RESPONSE = "invalid_response"
    INVALID_PARAMS = "invalid_params"


class ResearchError(Exception):
    """Base exception for all r2r-research errors."""

    error_type: ErrorType = ErrorType.BACKEND
    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "error_type": self.error_type.value,
            "message": str(self),
            "retryable": self.retryable,
            "details": self.details,
        }


class ConfigurationError(ResearchError):
    """Configuration could not be loaded or validated."""

    error_type = ErrorType.CONFIGURATION


class ConnectionFailedError(ResearchError):
    """The backend could not be reached (DNS, refused, timeout)."""

    error_type = ErrorType.NETWORK
    retryable = True


class BackendError(ResearchError):
    """The backend answered with an error status."""

    error_type = ErrorType.BACKEND

    def __init__(
        self,
        message: str,
        status_code: int,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details={"status_code": status_code, **(details or {})})
        self.status_code = status_code
        self.retryable = status_code >= 500


class AuthenticationError(BackendError):
    """The backend rejected the API key (401/403)."""

    error_type = ErrorType.AUTHENTICATION


class NotFoundError(BackendError):
    """The requested resource does not exist on the backend (404)."""

    error_type = ErrorType.NOT_FOUND


class InvalidResponseError(ResearchError):
    """The backend returned a body that could not be decoded or understood."""

    error_type = ErrorType.INVALID_RESPONSE


class CollectionNotFoundError(ResearchError):
    """One or more collection names could not be resolved."""

    error_type = ErrorType.INVALID_PARAMS

    def __init__(self, refs: list[str], available: list[str] | None = None):
        joined = ", ".join(refs)
        super().__init__(
            f"Unknown collection(s): {joined}",
            details={"unknown": refs, "available": available or []},
        )
        self.refs = refs

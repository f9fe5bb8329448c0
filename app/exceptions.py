"""Custom exceptions shared across services."""

from dataclasses import dataclass


@dataclass(eq=False)
class ServiceError(Exception):
    """Base exception for service layer failures."""

    message: str
    code: str = "service_error"
    status_code: int | None = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


@dataclass(eq=False)
class CompletionServiceError(ServiceError):
    """Raised when the completion endpoint cannot be reached."""

    code: str = "completion_error"

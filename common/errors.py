"""Application error types rendered into the JSON failure envelope."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(slots=True)
class AppError(Exception):
    """Base application error carrying an HTTP status and a stable code."""

    message: str
    code: str = "error"
    status_code: int = 400
    details: Any | None = None

    def to_dict(self) -> Mapping[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


@dataclass(slots=True)
class ValidationAppError(AppError):
    """Invalid user input; the request can be retried with corrected data."""

    code: str = "validation_error"
    status_code: int = 400


@dataclass(slots=True)
class NotFoundAppError(AppError):
    """The addressed resource (route or session) does not exist."""

    code: str = "not_found"
    status_code: int = 404


@dataclass(slots=True)
class InternalAppError(AppError):
    code: str = "internal_error"
    status_code: int = 500


def ensure_app_error(error: AppError | Exception, *, fallback_code: str) -> AppError:
    """Wrap unexpected exceptions so their internals never reach the client."""

    if isinstance(error, AppError):
        return error
    return InternalAppError(code=fallback_code, message="Unexpected server error.")


__all__ = [
    "AppError",
    "ValidationAppError",
    "NotFoundAppError",
    "InternalAppError",
    "ensure_app_error",
]

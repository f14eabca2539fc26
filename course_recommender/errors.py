from __future__ import annotations

from typing import Any


class RecommendationError(Exception):
    """Base error for the recommendation service.

    Carries an HTTP status and a stable error code so the API layer can
    render it without knowing the concrete subclass.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "Internal recommendation error"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(RecommendationError):
    """The requested learner profile does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"
    message = "Learner not found"


class DependencyError(RecommendationError):
    """A collaborator lookup (catalog, enrollments, stats) failed."""

    status_code = 503
    error_code = "DEPENDENCY_ERROR"
    message = "Recommendation data source unavailable"

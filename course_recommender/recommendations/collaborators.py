from __future__ import annotations

from typing import Iterable, Protocol

from .models import CourseAggregateStats, CourseCandidate, EnrollmentRecord


class LearnerDataSource(Protocol):
    """Read-only lookups the engine needs from the rest of the platform.

    Implementations own all I/O. ``get_learner_interests`` raises
    ``NotFoundError`` for unknown learners; any other failure should surface
    as ``DependencyError``.
    """

    def get_learner_interests(self, learner_id: str) -> set[str]:
        ...

    def get_enrollments(self, learner_id: str) -> list[EnrollmentRecord]:
        ...

    def get_published_candidates(self, excluding: set[str]) -> list[CourseCandidate]:
        ...

    def get_aggregate_stats(self, course_ids: Iterable[str]) -> dict[str, CourseAggregateStats]:
        ...

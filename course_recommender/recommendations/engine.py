from __future__ import annotations

import logging
import math
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .collaborators import LearnerDataSource
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .models import (
    CourseAggregateStats,
    CourseCandidate,
    EnrollmentRecord,
    RecommendationResponse,
    ScoredCandidate,
    category_key,
    normalize_tag,
)
from .scoring import rank, score_candidates

logger = logging.getLogger(__name__)

MAX_BASED_ON_CATEGORIES = 2


def normalize_limit(value: Any, default: int = 10) -> int:
    """Coerce a caller-supplied limit to a positive int.

    Anything that is not a positive number (``None``, ``0``, ``-5``, ``"x"``,
    booleans, NaN) falls back to ``default`` rather than raising.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    limit = int(number)
    return limit if limit >= 1 else default


class RecommendationEngine:
    """Rank published, not-yet-taken courses for a learner.

    The engine holds no mutable state; all data comes from ``source`` on each
    call, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        source: LearnerDataSource,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        self.source = source
        self.config = config

    def recommend(self, learner_id: str, limit: Any = None) -> list[ScoredCandidate]:
        return self.recommend_with_context(learner_id, limit).recommendations

    def recommend_with_context(
        self, learner_id: str, limit: Any = None
    ) -> RecommendationResponse:
        limit = normalize_limit(limit, self.config.default_limit)

        interests, enrollments = self._resolve_learner(learner_id)
        enrolled_ids = {e.course_id for e in enrollments}
        category_counts = Counter(category_key(e.course_category) for e in enrollments)
        based_on = [cat for cat, _ in category_counts.most_common(MAX_BASED_ON_CATEGORIES)]

        candidates = [
            c
            for c in self.source.get_published_candidates(excluding=set(enrolled_ids))
            if c.is_published and c.course_id not in enrolled_ids
        ]
        logger.debug(
            "learner=%s interests=%d enrollments=%d candidates=%d",
            learner_id, len(interests), len(enrollments), len(candidates),
        )

        if not candidates:
            return self._response(learner_id, [], 0, [])

        stats = self.source.get_aggregate_stats({c.course_id for c in candidates})
        frame = score_candidates(
            candidates, interests, category_counts, stats, self.config.weights,
        )
        top = rank(frame, limit)

        items: list[ScoredCandidate] = []
        for idx, row in top.iterrows():
            course = candidates[idx]
            items.append(_to_scored(course, row, stats.get(course.course_id)))

        logger.debug("learner=%s returned=%d limit=%d", learner_id, len(items), limit)
        return self._response(learner_id, items, len(candidates), based_on)

    def _resolve_learner(self, learner_id: str) -> tuple[set[str], list[EnrollmentRecord]]:
        """Fetch interests and enrollments; the two lookups are independent."""
        if self.config.parallel_lookups:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                interests_future = executor.submit(self.source.get_learner_interests, learner_id)
                enrollments_future = executor.submit(self.source.get_enrollments, learner_id)
                # Interests first so an unknown learner reports NotFoundError
                raw_interests = interests_future.result()
                enrollments = enrollments_future.result()
        else:
            raw_interests = self.source.get_learner_interests(learner_id)
            enrollments = self.source.get_enrollments(learner_id)

        interests = {normalize_tag(t) for t in raw_interests if normalize_tag(t)}
        return interests, list(enrollments)

    def _response(
        self,
        learner_id: str,
        items: list[ScoredCandidate],
        total_candidates: int,
        based_on: list[str],
    ) -> RecommendationResponse:
        return RecommendationResponse(
            learner_id=learner_id,
            recommendations=items,
            total_candidates=total_candidates,
            based_on_categories=based_on,
            weights=self.config.weights.as_dict(),
        )


def _to_scored(
    course: CourseCandidate,
    row: Any,
    stats: CourseAggregateStats | None,
) -> ScoredCandidate:
    return ScoredCandidate(
        course_id=course.course_id,
        title=course.title,
        description=course.description,
        category=course.category,
        tags=list(row["tags_list"]),
        interest_match=int(row["interest_match"]),
        category_affinity=int(row["category_affinity"]),
        rating_quality=float(row["rating_quality"]),
        popularity=float(row["popularity"]),
        score=float(row["score"]),
        stats=stats or CourseAggregateStats(),
    )

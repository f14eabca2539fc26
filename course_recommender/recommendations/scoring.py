from __future__ import annotations

from typing import Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from .config import ScoringWeights
from .models import CourseAggregateStats, CourseCandidate, normalize_tag


def normalize_tags(tags: Iterable[object]) -> list[str]:
    """Lower-case, strip and de-duplicate tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        key = normalize_tag(tag)
        if key:
            seen.setdefault(key, None)
    return list(seen)


def interest_match(tags: Iterable[str], interests: set[str]) -> int:
    return sum(1 for t in tags if t in interests)


def category_affinity(category_key: str, category_counts: Mapping[str, int]) -> int:
    return int(category_counts.get(category_key, 0))


def popularity_score(enrollment_count: int) -> float:
    """log10(n + 1): zero for unseen courses, grows slowly with volume."""
    return float(np.log10(max(enrollment_count, 0) + 1))


def score_candidates(
    candidates: Sequence[CourseCandidate],
    interests: set[str],
    category_counts: Mapping[str, int],
    stats: Mapping[str, CourseAggregateStats],
    weights: ScoringWeights,
) -> pd.DataFrame:
    """Score every candidate; one row per candidate in input order."""
    empty = CourseAggregateStats()
    rows = []
    for course in candidates:
        course_stats = stats.get(course.course_id) or empty
        rows.append({
            "course_id": course.course_id,
            "tags_list": normalize_tags(course.tags),
            "category_key": course.category_key,
            "avg_rating": course_stats.avg_rating,
            "enrollment_count": course_stats.enrollment_count,
        })
    frame = pd.DataFrame(
        rows,
        columns=["course_id", "tags_list", "category_key", "avg_rating", "enrollment_count"],
    )

    frame["interest_match"] = frame["tags_list"].apply(
        lambda tags: interest_match(tags, interests)
    ).astype(int)
    frame["category_affinity"] = frame["category_key"].apply(
        lambda key: category_affinity(key, category_counts)
    ).astype(int)
    frame["rating_quality"] = frame["avg_rating"].astype(float).fillna(0.0).clip(lower=0.0)
    frame["popularity"] = frame["enrollment_count"].apply(popularity_score).astype(float)

    frame["score"] = (
        weights.interest * frame["interest_match"]
        + weights.category * frame["category_affinity"]
        + weights.rating * frame["rating_quality"]
        + weights.popularity * frame["popularity"]
    ).astype(float)
    return frame


def rank(frame: pd.DataFrame, limit: int) -> pd.DataFrame:
    """Highest score first; equal scores keep their input order."""
    return frame.sort_values("score", ascending=False, kind="stable").head(limit)

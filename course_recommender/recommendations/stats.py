from __future__ import annotations

from typing import Iterable

import pandas as pd

from .models import CourseAggregateStats


def compute_aggregate_stats(
    enrollments: pd.DataFrame,
    course_ids: Iterable[str],
) -> dict[str, CourseAggregateStats]:
    """Group enrollment rows by course and summarise ratings and volume.

    ``enrollments`` needs ``course_id`` and ``rating`` columns. Ratings that
    are empty or non-numeric do not count towards the average. Every
    requested id is present in the result; ids without enrollments get
    zeroed stats.
    """
    wanted = {str(c) for c in course_ids}
    result = {cid: CourseAggregateStats() for cid in wanted}
    if not wanted or enrollments.empty:
        return result

    keys = enrollments["course_id"].astype(str)
    subset = enrollments.loc[keys.isin(wanted)]
    if subset.empty:
        return result

    ratings = pd.to_numeric(subset["rating"], errors="coerce")
    grouped = ratings.groupby(subset["course_id"].astype(str))
    means = grouped.mean()
    counts = grouped.count()
    sizes = grouped.size()

    for cid, size in sizes.items():
        avg = means.get(cid)
        result[cid] = CourseAggregateStats(
            avg_rating=float(avg) if pd.notna(avg) else 0.0,
            rating_count=int(counts.get(cid, 0)),
            enrollment_count=int(size),
        )
    return result

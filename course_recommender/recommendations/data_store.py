from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Iterable

import pandas as pd

from ..errors import DependencyError, NotFoundError
from .models import (
    CourseAggregateStats,
    CourseCandidate,
    EnrollmentRecord,
    LearnerProfile,
    PUBLISHED,
)
from .stats import compute_aggregate_stats

logger = logging.getLogger(__name__)

_PROCESSED_DIR = Path(__file__).resolve().parent.parent / "data" / "processed"

LEARNERS_CSV = "learners.csv"
COURSES_CSV = "courses.csv"
ENROLLMENTS_CSV = "enrollments.csv"

LEARNER_COLUMNS = ["learner_id", "interests"]
COURSE_COLUMNS = ["course_id", "title", "description", "category", "tags", "status"]
ENROLLMENT_COLUMNS = ["learner_id", "course_id", "rating", "enrolled_at"]

_EPOCH = pd.Timestamp(0, tz="UTC")


def _split_list(value: str) -> list[str]:
    return [v.strip() for v in str(value).split(",") if v.strip()]


class CsvDataStore:
    """Learner, catalog and enrollment lookups over the processed CSV tables.

    Tables are read on first use and kept in memory for the lifetime of the
    store. Every read error surfaces as ``DependencyError``.
    """

    def __init__(self, data_dir: Path | str | None = None) -> None:
        self.data_dir = Path(data_dir or os.getenv("COURSE_RECS_DATA_DIR") or _PROCESSED_DIR)
        self._lock = threading.Lock()
        self._learners: pd.DataFrame | None = None
        self._courses: pd.DataFrame | None = None
        self._enrollments: pd.DataFrame | None = None

    # ── table loading ────────────────────────────────────────────────────

    def _read_table(self, filename: str, columns: list[str]) -> pd.DataFrame:
        path = self.data_dir / filename
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            logger.warning("Failed to load %s", path, exc_info=True)
            raise DependencyError(
                f"Could not load {filename}", details={"path": str(path)},
            ) from exc

        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise DependencyError(
                f"{filename} is missing columns: {', '.join(missing)}",
                details={"path": str(path)},
            )
        logger.info("Loaded %d rows from %s", len(df), path)
        return df

    def _learners_df(self) -> pd.DataFrame:
        with self._lock:
            if self._learners is None:
                df = self._read_table(LEARNERS_CSV, LEARNER_COLUMNS)
                df["learner_id"] = df["learner_id"].str.strip()
                self._learners = df
            return self._learners

    def _courses_df(self) -> pd.DataFrame:
        with self._lock:
            if self._courses is None:
                df = self._read_table(COURSES_CSV, COURSE_COLUMNS)
                df["course_id"] = df["course_id"].str.strip()
                df["tags_list"] = df["tags"].apply(_split_list)
                df["status_lower"] = df["status"].str.strip().str.lower()
                self._courses = df
            return self._courses

    def _enrollments_df(self) -> pd.DataFrame:
        with self._lock:
            if self._enrollments is None:
                df = self._read_table(ENROLLMENTS_CSV, ENROLLMENT_COLUMNS)
                df["learner_id"] = df["learner_id"].str.strip()
                df["course_id"] = df["course_id"].str.strip()
                # Ratings outside 1-5 are treated as not rated
                ratings = pd.to_numeric(df["rating"], errors="coerce")
                df["rating"] = ratings.where(ratings.between(1.0, 5.0))
                enrolled_at = pd.to_datetime(
                    df["enrolled_at"], utc=True, errors="coerce", format="ISO8601",
                )
                df["enrolled_at"] = enrolled_at.fillna(_EPOCH)
                self._enrollments = df
            return self._enrollments

    # ── LearnerDataSource ────────────────────────────────────────────────

    def get_learner_profile(self, learner_id: str) -> LearnerProfile:
        df = self._learners_df()
        match = df.loc[df["learner_id"] == str(learner_id).strip()]
        if match.empty:
            raise NotFoundError(
                f"Learner {learner_id!r} not found", details={"learner_id": learner_id},
            )
        row = match.iloc[0]
        return LearnerProfile(learner_id=row["learner_id"], interests=_split_list(row["interests"]))

    def get_learner_interests(self, learner_id: str) -> set[str]:
        return self.get_learner_profile(learner_id).interests

    def get_enrollments(self, learner_id: str) -> list[EnrollmentRecord]:
        enrollments = self._enrollments_df()
        courses = self._courses_df()
        categories = dict(zip(courses["course_id"], courses["category"]))

        mine = enrollments.loc[enrollments["learner_id"] == str(learner_id).strip()]
        records: list[EnrollmentRecord] = []
        for _, row in mine.iterrows():
            category = categories.get(row["course_id"]) or None
            records.append(EnrollmentRecord(
                learner_id=row["learner_id"],
                course_id=row["course_id"],
                rating=float(row["rating"]) if pd.notna(row["rating"]) else None,
                enrolled_at=row["enrolled_at"].to_pydatetime(),
                course_category=category,
            ))
        return records

    def get_published_candidates(self, excluding: set[str]) -> list[CourseCandidate]:
        df = self._courses_df()
        mask = (df["status_lower"] == PUBLISHED) & ~df["course_id"].isin(set(excluding))
        return [
            CourseCandidate(
                course_id=row["course_id"],
                title=row["title"],
                description=row["description"],
                category=row["category"].strip() or None,
                tags=row["tags_list"],
                status=row["status"],
            )
            for _, row in df.loc[mask].iterrows()
        ]

    def get_aggregate_stats(self, course_ids: Iterable[str]) -> dict[str, CourseAggregateStats]:
        return compute_aggregate_stats(self._enrollments_df(), course_ids)

    # ── metadata ─────────────────────────────────────────────────────────

    def categories(self) -> list[str]:
        df = self._courses_df()
        return sorted({c.strip().lower() for c in df["category"] if c.strip()})

    def tags(self) -> list[str]:
        df = self._courses_df()
        return sorted({t.lower() for tags in df["tags_list"] for t in tags})


_default_store: CsvDataStore | None = None


def get_default_store() -> CsvDataStore:
    """Return the process-wide store, creating it on first call."""
    global _default_store
    if _default_store is None:
        _default_store = CsvDataStore()
    return _default_store


def reset_default_store() -> None:
    global _default_store
    _default_store = None

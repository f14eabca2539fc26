from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

LEARNER_COLUMNS: List[str] = ["learner_id", "interests"]
COURSE_COLUMNS: List[str] = ["course_id", "title", "description", "category", "tags", "status"]
ENROLLMENT_COLUMNS: List[str] = ["learner_id", "course_id", "rating", "enrolled_at"]


def _object_id(value: Any) -> str | None:
    """Unwrap ``{"$oid": ...}`` export ids and populated sub-documents."""
    if value is None:
        return None
    if isinstance(value, dict):
        if "$oid" in value:
            return str(value["$oid"])
        if "_id" in value:
            return _object_id(value["_id"])
        return None
    raw = str(value).strip()
    return raw or None


def _normalize_rating(rating: Any) -> float | None:
    if rating is None or isinstance(rating, bool):
        return None
    try:
        value = float(str(rating).strip())
    except (TypeError, ValueError):
        return None
    if value != value:  # NaN
        return None

    # Ratings outside 1-5 are invalid, not extreme
    if not 1.0 <= value <= 5.0:
        return None
    return value


def _normalize_timestamp(value: Any) -> str:
    if isinstance(value, dict):
        value = value.get("$date")
    if isinstance(value, dict):
        value = value.get("$numberLong")
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value)
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
    ts = pd.to_datetime(str(value), utc=True, errors="coerce")
    return "" if pd.isna(ts) else ts.isoformat()


def _join_list(values: Any) -> str:
    if not values:
        return ""
    if isinstance(values, str):
        values = values.split(",")
    return ",".join(str(v).strip() for v in values if str(v).strip())


def _learners_frame(users: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for user in users:
        if user.get("role", "student") != "student":
            continue
        if user.get("isActive") is False:
            continue
        learner_id = _object_id(user.get("_id"))
        if not learner_id:
            continue
        interests = [str(i).strip().lower() for i in user.get("interests") or []]
        rows.append({"learner_id": learner_id, "interests": _join_list(interests)})
    return pd.DataFrame(rows, columns=LEARNER_COLUMNS)


def _courses_frame(courses: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for course in courses:
        course_id = _object_id(course.get("_id"))
        if not course_id:
            continue
        rows.append({
            "course_id": course_id,
            "title": str(course.get("title") or "").strip(),
            "description": str(course.get("description") or "").strip(),
            "category": str(course.get("category") or "").strip(),
            "tags": _join_list(course.get("tags")),
            "status": str(course.get("status") or "draft").strip().lower(),
        })
    return pd.DataFrame(rows, columns=COURSE_COLUMNS)


def _enrollments_frame(
    enrollments: List[Dict[str, Any]],
    courses: List[Dict[str, Any]],
) -> pd.DataFrame:
    rows = []
    for enrollment in enrollments:
        learner_id = _object_id(enrollment.get("user"))
        course_id = _object_id(enrollment.get("course"))
        if not learner_id or not course_id:
            continue
        rows.append({
            "learner_id": learner_id,
            "course_id": course_id,
            "rating": _normalize_rating(enrollment.get("rating")),
            "enrolled_at": _normalize_timestamp(enrollment.get("createdAt")),
        })

    # Older exports only track membership on the course document itself
    for course in courses:
        course_id = _object_id(course.get("_id"))
        if not course_id:
            continue
        enrolled_at = _normalize_timestamp(course.get("createdAt"))
        for student in course.get("enrolledStudents") or []:
            learner_id = _object_id(student)
            if learner_id:
                rows.append({
                    "learner_id": learner_id,
                    "course_id": course_id,
                    "rating": None,
                    "enrolled_at": enrolled_at,
                })

    df = pd.DataFrame(rows, columns=ENROLLMENT_COLUMNS)
    # One enrollment per (learner, course); explicit enrollment documents win
    return df.drop_duplicates(subset=["learner_id", "course_id"], keep="first")


def run_ingestion(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> Dict[str, Path]:
    """
    Execute the catalog ingestion pipeline.

    Steps:
    - Read the platform JSON export (``users``, ``courses``, ``enrollments``).
    - Map raw documents into the canonical learner, course and enrollment tables.
    - Persist cleaned tables as CSV for the recommendation data store.
    """
    with open(config.source_path, encoding="utf-8") as fh:
        export = json.load(fh)

    users = export.get("users") or []
    courses = export.get("courses") or []
    enrollments = export.get("enrollments") or []

    config.processed_data_dir.mkdir(parents=True, exist_ok=True)

    outputs = {
        "learners": (config.learners_path, _learners_frame(users)),
        "courses": (config.courses_path, _courses_frame(courses)),
        "enrollments": (config.enrollments_path, _enrollments_frame(enrollments, courses)),
    }
    for path, frame in outputs.values():
        frame.to_csv(path, index=False)
    return {name: path for name, (path, _) in outputs.items()}


if __name__ == "__main__":
    if len(sys.argv) > 1:
        cfg = IngestionConfig(source_path=Path(sys.argv[1]))
    else:
        cfg = DEFAULT_INGESTION_CONFIG
    paths = run_ingestion(cfg)
    for name, path in paths.items():
        print(f"{name}: {path}")

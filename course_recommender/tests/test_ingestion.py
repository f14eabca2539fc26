import json
from pathlib import Path

import pandas as pd

from course_recommender.data_ingestion.config import IngestionConfig
from course_recommender.data_ingestion.ingest import (
    COURSE_COLUMNS,
    ENROLLMENT_COLUMNS,
    LEARNER_COLUMNS,
    run_ingestion,
)
from course_recommender.recommendations.data_store import CsvDataStore
from course_recommender.recommendations.engine import RecommendationEngine

EXPORT = {
    "users": [
        {"_id": {"$oid": "u1"}, "role": "student", "interests": ["Python ", "ML"]},
        {"_id": {"$oid": "u2"}, "role": "instructor", "interests": ["teaching"]},
        {"_id": {"$oid": "u3"}, "interests": []},
        {"_id": {"$oid": "u4"}, "role": "student", "isActive": False},
    ],
    "courses": [
        {
            "_id": {"$oid": "c1"},
            "title": " Intro to Python ",
            "description": "Basics",
            "category": "Programming",
            "tags": ["python", "beginner"],
            "status": "published",
            "createdAt": {"$date": "2025-01-01T00:00:00Z"},
            "enrolledStudents": [{"$oid": "u1"}, {"$oid": "u3"}],
        },
        {
            "_id": {"$oid": "c2"},
            "title": "ML 101",
            "description": "Models",
            "tags": ["ml"],
            "status": "Published",
        },
        {"_id": {"$oid": "c3"}, "title": "Drafty", "description": ""},
    ],
    "enrollments": [
        {"user": {"$oid": "u1"}, "course": {"$oid": "c1"}, "rating": 7, "createdAt": "2025-02-01T10:00:00Z"},
        {"user": {"$oid": "u3"}, "course": {"$oid": "c2"}, "rating": "n/a", "createdAt": {"$date": 1735689600000}},
        {"user": None, "course": {"$oid": "c2"}},
    ],
}


def _run(tmp_path: Path) -> IngestionConfig:
    source = tmp_path / "export.json"
    source.write_text(json.dumps(EXPORT))
    cfg = IngestionConfig(source_path=source, processed_data_dir=tmp_path / "processed")
    run_ingestion(config=cfg)
    return cfg


def test_run_ingestion_writes_canonical_tables(tmp_path: Path):
    cfg = _run(tmp_path)

    assert list(pd.read_csv(cfg.learners_path).columns) == LEARNER_COLUMNS
    assert list(pd.read_csv(cfg.courses_path).columns) == COURSE_COLUMNS
    assert list(pd.read_csv(cfg.enrollments_path).columns) == ENROLLMENT_COLUMNS


def test_only_active_students_become_learners(tmp_path: Path):
    cfg = _run(tmp_path)
    learners = pd.read_csv(cfg.learners_path, dtype=str, keep_default_na=False)

    assert list(learners["learner_id"]) == ["u1", "u3"]
    assert learners.iloc[0]["interests"] == "python,ml"


def test_courses_are_normalized(tmp_path: Path):
    cfg = _run(tmp_path)
    courses = pd.read_csv(cfg.courses_path, dtype=str, keep_default_na=False).set_index("course_id")

    assert courses.loc["c1", "title"] == "Intro to Python"
    assert courses.loc["c1", "tags"] == "python,beginner"
    assert courses.loc["c2", "status"] == "published"
    assert courses.loc["c2", "category"] == ""
    assert courses.loc["c3", "status"] == "draft"


def test_enrollments_merge_documents_and_legacy_membership(tmp_path: Path):
    cfg = _run(tmp_path)
    enrollments = pd.read_csv(cfg.enrollments_path, dtype=str, keep_default_na=False)
    pairs = list(zip(enrollments["learner_id"], enrollments["course_id"]))

    assert sorted(pairs) == [("u1", "c1"), ("u3", "c1"), ("u3", "c2")]
    by_pair = dict(zip(pairs, enrollments["rating"]))
    assert by_pair[("u1", "c1")] == ""
    assert by_pair[("u3", "c2")] == ""
    assert by_pair[("u3", "c1")] == ""


def test_ingested_tables_feed_the_engine(tmp_path: Path):
    cfg = _run(tmp_path)
    engine = RecommendationEngine(CsvDataStore(cfg.processed_data_dir))

    result = engine.recommend("u1", 5)

    assert [r.course_id for r in result] == ["c2"]
    assert result[0].interest_match == 1


def _ingest_enrollments(tmp_path: Path, enrollments: list) -> IngestionConfig:
    export = {
        "users": [{"_id": {"$oid": "u1"}, "role": "student"}],
        "courses": [{"_id": {"$oid": "c1"}, "title": "C", "status": "published"}],
        "enrollments": enrollments,
    }
    source = tmp_path / "export.json"
    source.write_text(json.dumps(export))
    cfg = IngestionConfig(source_path=source, processed_data_dir=tmp_path / "processed")
    run_ingestion(config=cfg)
    return cfg


def test_out_of_range_rating_is_dropped_not_clamped(tmp_path: Path):
    cfg = _ingest_enrollments(tmp_path, [
        {"user": {"$oid": "u1"}, "course": {"$oid": "c1"}, "rating": 0},
        {"user": {"$oid": "u2"}, "course": {"$oid": "c1"}, "rating": 4.5},
    ])

    stats = CsvDataStore(cfg.processed_data_dir).get_aggregate_stats(["c1"])["c1"]

    assert stats.rating_count == 1
    assert stats.avg_rating == 4.5
    assert stats.enrollment_count == 2


def test_number_long_dates_are_unwrapped(tmp_path: Path):
    cfg = _ingest_enrollments(tmp_path, [
        {
            "user": {"$oid": "u1"},
            "course": {"$oid": "c1"},
            "createdAt": {"$date": {"$numberLong": "1735689600000"}},
        },
    ])

    record = CsvDataStore(cfg.processed_data_dir).get_enrollments("u1")[0]

    assert record.enrolled_at.year == 2025
    assert record.enrolled_at.month == 1
    assert record.enrolled_at.day == 1

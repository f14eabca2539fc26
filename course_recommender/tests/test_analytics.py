from __future__ import annotations

from course_recommender.analytics.aggregator import compute_analytics
from course_recommender.analytics.store import clear_events, get_events, record_event


def test_analytics_empty():
    body = compute_analytics([])
    assert body["total_requests"] == 0
    assert body["avg_response_time_ms"] == 0.0
    assert body["empty_result_rate"] == 0.0


def test_analytics_summarises_recommend_events():
    clear_events()
    record_event("recommend", {
        "learner_id": "L1", "results_returned": 2, "course_ids": ["C2", "C4"], "response_time_ms": 4.0,
    })
    record_event("recommend", {
        "learner_id": "L2", "results_returned": 1, "course_ids": ["C2"], "response_time_ms": 6.0,
    })
    record_event("recommend", {
        "learner_id": "L9", "results_returned": 0, "course_ids": [], "response_time_ms": 2.0,
    })
    record_event("recommend", {"learner_id": "ghost", "error": "NOT_FOUND", "response_time_ms": 1.0})
    record_event("other", {"learner_id": "L1"})

    body = compute_analytics(get_events())

    assert body["total_requests"] == 4
    assert body["unique_learners"] == 4
    assert body["avg_response_time_ms"] == 3.2
    assert body["top_recommended_courses"][0] == {"course_id": "C2", "count": 2}
    assert body["empty_result_rate"] == 33.3
    assert body["errors"] == {"total": 1, "by_kind": {"NOT_FOUND": 1}}


def test_clear_events():
    record_event("recommend", {"learner_id": "L1"})
    clear_events()
    assert get_events() == []


def test_analytics_is_a_regular_package():
    import course_recommender.analytics as analytics

    # Namespace packages have no __file__ and are skipped by packages.find
    assert analytics.__file__ is not None

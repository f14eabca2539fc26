from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    calls = [e for e in events if e["type"] == "recommend"]
    total = len(calls)

    # Average response time
    times = [c["response_time_ms"] for c in calls if "response_time_ms" in c]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Most recommended courses
    course_counter: Counter[str] = Counter()
    for c in calls:
        for course_id in c.get("course_ids", []) or []:
            course_counter[course_id] += 1
    top_courses = [{"course_id": cid, "count": n} for cid, n in course_counter.most_common(10)]

    errors = [c for c in calls if c.get("error")]
    error_counter: Counter[str] = Counter(c["error"] for c in errors)

    succeeded = total - len(errors)
    empty = sum(1 for c in calls if not c.get("error") and c.get("results_returned", 0) == 0)

    return {
        "total_requests": total,
        "unique_learners": len({c.get("learner_id") for c in calls}),
        "avg_response_time_ms": avg_time,
        "top_recommended_courses": top_courses,
        "empty_result_rate": round(empty / succeeded * 100, 1) if succeeded else 0.0,
        "errors": {
            "total": len(errors),
            "by_kind": dict(error_counter),
        },
    }

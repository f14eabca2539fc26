from __future__ import annotations

import logging
import time

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_event
from .errors import RecommendationError
from .recommendations.data_store import get_default_store
from .recommendations.engine import RecommendationEngine
from .recommendations.models import RecommendationResponse

logger = logging.getLogger(__name__)

app = FastAPI(title="Course Recommendation API", version="1.0.0")


@app.exception_handler(RecommendationError)
async def recommendation_error_handler(
    request: Request, exc: RecommendationError
) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def get_engine() -> RecommendationEngine:
    return RecommendationEngine(get_default_store())


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    store = get_default_store()
    return {"categories": store.categories(), "tags": store.tags()}


@app.get("/recommendations/{learner_id}", response_model=RecommendationResponse)
def recommendations(
    learner_id: str,
    limit: str | None = None,
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendationResponse:
    # limit stays a raw string; the engine falls back to its default for bad values
    start_time = time.time()
    try:
        response = engine.recommend_with_context(learner_id, limit)
    except RecommendationError as exc:
        logger.warning("Recommendation failed for learner %s: %s", learner_id, exc.error_code)
        record_event("recommend", {
            "learner_id": learner_id,
            "limit": limit,
            "error": exc.error_code,
            "response_time_ms": round((time.time() - start_time) * 1000, 1),
        })
        raise

    record_event("recommend", {
        "learner_id": learner_id,
        "limit": limit,
        "total_candidates": response.total_candidates,
        "results_returned": len(response.recommendations),
        "course_ids": [r.course_id for r in response.recommendations],
        "response_time_ms": round((time.time() - start_time) * 1000, 1),
    })
    return response


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())

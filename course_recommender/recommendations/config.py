from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class ScoringWeights:
    """Relative weight of each sub-score in the composite score."""

    interest: float = field(default_factory=lambda: _env_float("COURSE_RECS_INTEREST_WEIGHT", 2.0))
    category: float = field(default_factory=lambda: _env_float("COURSE_RECS_CATEGORY_WEIGHT", 2.0))
    rating: float = field(default_factory=lambda: _env_float("COURSE_RECS_RATING_WEIGHT", 1.0))
    popularity: float = field(default_factory=lambda: _env_float("COURSE_RECS_POPULARITY_WEIGHT", 0.5))

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            if value < 0:
                raise ValueError(f"Scoring weight {name!r} must be non-negative, got {value}")

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class EngineConfig:
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    default_limit: int = 10
    parallel_lookups: bool = True
    max_workers: int = 2


DEFAULT_ENGINE_CONFIG = EngineConfig()

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

PUBLISHED = "published"
OTHER_CATEGORY = "other"


def normalize_tag(value: object) -> str:
    return str(value).strip().lower()


class LearnerProfile(BaseModel):
    learner_id: str = Field(..., min_length=1)
    interests: set[str] = Field(default_factory=set)

    @field_validator("interests", mode="before")
    @classmethod
    def _normalize_interests(cls, value):
        if value is None:
            return set()
        if isinstance(value, str):
            value = value.split(",")
        return {normalize_tag(v) for v in value if normalize_tag(v)}


class EnrollmentRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    learner_id: str
    course_id: str
    rating: float | None = Field(default=None, ge=1.0, le=5.0)
    enrolled_at: datetime
    course_category: str | None = None


class CourseCandidate(BaseModel):
    course_id: str = Field(..., min_length=1)
    title: str
    description: str = ""
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    status: str = "draft"

    @property
    def is_published(self) -> bool:
        return self.status.strip().lower() == PUBLISHED

    @property
    def category_key(self) -> str:
        """Lower-cased category, or the ``other`` sentinel when missing."""
        return category_key(self.category)


class CourseAggregateStats(BaseModel):
    avg_rating: float = Field(default=0.0, ge=0.0)
    rating_count: int = Field(default=0, ge=0)
    enrollment_count: int = Field(default=0, ge=0)


class ScoredCandidate(BaseModel):
    course_id: str
    title: str
    description: str
    category: str | None
    tags: list[str]
    interest_match: int
    category_affinity: int
    rating_quality: float
    popularity: float
    score: float
    stats: CourseAggregateStats


class RecommendationResponse(BaseModel):
    learner_id: str
    recommendations: list[ScoredCandidate]
    total_candidates: int
    based_on_categories: list[str] = Field(default_factory=list)
    weights: dict[str, float] = Field(default_factory=dict)


def category_key(category: str | None) -> str:
    if category is None:
        return OTHER_CATEGORY
    key = category.strip().lower()
    return key or OTHER_CATEGORY

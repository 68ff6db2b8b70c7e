"""Search query models."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchQuery(BaseModel):
    """Incoming task search request."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(description="Free-text description of the task being looked for")
    relative_date: str | None = Field(
        default=None,
        description="Optional date expression such as 'last week' or '2024-03-01'",
    )
    user_id: str
    database_id: str
    max_results: int | None = Field(default=None, ge=1, le=100)
    include_content: bool | None = None

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("description must not be empty")
        return v


class EnrichedQuery(SearchQuery):
    """Search query annotated with keywords and a parsed target date."""

    parsed_target_date: datetime | None = None


@dataclass
class DateAnalysis:
    """Date interpretation returned by the language-analysis collaborator."""

    target_date: datetime
    confidence: float
    interpretation: str


@dataclass
class RankingCriteria:
    """Weights used to combine relevance and date proximity."""

    semantic_weight: float
    date_weight: float
    max_results: int = 10

"""Pydantic schemas for canonical survey responses and their statistics.

Every ingestion source (analytical query rows, CSV exports, JSON imports,
platform API records) converges on ``SurveyResponse``. Field names are
snake_case in Python and camelCase on the wire.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from survey_insights.schemas.survey import QuestionType


class CamelModel(BaseModel):
    """Base model serializing to camelCase keys and accepting either case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump to the JSON shape exchanged with clients and files."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ResponseStatus(str, Enum):
    """Lifecycle state of a submitted response."""
    COMPLETED = "completed"
    PARTIAL = "partial"
    ABANDONED = "abandoned"


class SurveyResponse(CamelModel):
    """Canonical survey response.

    Created by the response mapper and never mutated afterwards.

    Attributes:
        id: Response identifier, unique within the store
        survey_id: Survey the response belongs to
        survey_title: Survey title at the time of submission
        answers: Question id to answer value
        timestamp: ISO-8601 submission time
        completed_at: ISO-8601 completion time
        session_id: Respondent session identifier
        time_spent: Seconds spent on the survey
        status: Completion status
        user_id: Platform user that submitted the response
        organization_id: Platform organization of the submission
        exercise_id: Platform exercise the survey ran in
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(..., min_length=1)
    survey_id: str = ""
    survey_title: str = ""
    answers: dict[str, Any] = Field(default_factory=dict)
    timestamp: str
    completed_at: Optional[str] = None
    session_id: Optional[str] = None
    time_spent: Optional[int] = Field(None, ge=0)
    status: ResponseStatus = ResponseStatus.COMPLETED
    user_id: Optional[str] = None
    organization_id: Optional[str] = None
    exercise_id: Optional[str] = None


class QuestionStatistics(CamelModel):
    """Aggregated answers for one question.

    Only the fields relevant to the question's type are populated.
    """
    question_id: str
    question_text: str
    question_type: QuestionType
    total_responses: int = Field(..., ge=0)
    response_rate: float = Field(..., ge=0, le=100)
    option_counts: Optional[dict[str, int]] = None
    text_responses: Optional[list[str]] = None
    average_rating: Optional[float] = None
    rating_distribution: Optional[dict[str, int]] = None
    average_ranks: Optional[dict[str, float]] = None


class ResponseCountByDate(CamelModel):
    """Number of responses submitted on one UTC calendar date."""
    date: str
    count: int


class SurveyStatistics(CamelModel):
    """Survey-level summary plus per-question statistics in survey order."""
    survey_id: str
    total_responses: int
    completion_rate: float
    average_time_spent: int
    question_stats: list[QuestionStatistics] = Field(default_factory=list)
    response_over_time: list[ResponseCountByDate] = Field(default_factory=list)


class ResponseQuery(BaseModel):
    """Filters applied to the analytical response source.

    Attributes:
        survey_id: Only responses of this survey
        start_date: Inclusive lower bound on the response timestamp
        end_date: Inclusive upper bound on the response timestamp
        status: Only responses with this status
        limit: Maximum number of responses returned
        offset: Number of matching responses skipped
    """
    survey_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: Optional[ResponseStatus] = None
    limit: int = Field(default=1000, ge=1, le=10000)
    offset: int = Field(default=0, ge=0)

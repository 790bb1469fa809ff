"""Pydantic schemas for data validation.

This package contains the survey definition models, the canonical response
and statistics models, and the platform API models.
"""

from survey_insights.schemas.survey import (
    QuestionType,
    Question,
    Section,
    Survey,
)
from survey_insights.schemas.response import (
    ResponseStatus,
    SurveyResponse,
    QuestionStatistics,
    ResponseCountByDate,
    SurveyStatistics,
    ResponseQuery,
)
from survey_insights.schemas.platform import (
    GameDataDTO,
    GameDataList,
    GameDataQuery,
)

__all__ = [
    "QuestionType",
    "Question",
    "Section",
    "Survey",
    "ResponseStatus",
    "SurveyResponse",
    "QuestionStatistics",
    "ResponseCountByDate",
    "SurveyStatistics",
    "ResponseQuery",
    "GameDataDTO",
    "GameDataList",
    "GameDataQuery",
]

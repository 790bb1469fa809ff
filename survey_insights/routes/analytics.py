"""Endpoints serving responses from the analytical source.

Responses are returned in canonical camelCase form, wrapped as
``{"success": true, "data": [...], "count": n}``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from survey_insights.logging_config import get_logger
from survey_insights.routes.dependencies import get_analytics_repository
from survey_insights.schemas.response import ResponseQuery, ResponseStatus
from survey_insights.services.analytics_repository import AnalyticsQueryError, AnalyticsRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/api/survey-responses")


def _build_query(**filters) -> ResponseQuery:
    try:
        return ResponseQuery(**{key: value for key, value in filters.items() if value is not None})
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))


@router.get("")
async def list_survey_responses(
    survey_id: Optional[str] = Query(None, alias="surveyId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    status: Optional[ResponseStatus] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    repository: AnalyticsRepository = Depends(get_analytics_repository),
) -> dict:
    """Fetch survey responses with optional filters."""
    query = _build_query(
        survey_id=survey_id,
        start_date=start_date,
        end_date=end_date,
        status=status,
        limit=limit,
        offset=offset,
    )
    try:
        responses = repository.get_survey_responses(query)
    except AnalyticsQueryError as e:
        logger.error(f"Error in GET /api/survey-responses: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "data": [response.to_wire() for response in responses],
        "count": len(responses),
    }


@router.get("/{survey_id}")
async def get_responses_for_survey(
    survey_id: str,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    repository: AnalyticsRepository = Depends(get_analytics_repository),
) -> dict:
    """Fetch all responses of one survey plus the survey's total count."""
    query = _build_query(survey_id=survey_id, limit=limit, offset=offset)
    try:
        responses = repository.get_survey_responses(query)
        total = repository.get_response_count(survey_id)
    except AnalyticsQueryError as e:
        logger.error(f"Error in GET /api/survey-responses/{survey_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "data": [response.to_wire() for response in responses],
        "count": len(responses),
        "total": total,
    }


@router.get("/{survey_id}/count")
async def get_response_count(
    survey_id: str,
    repository: AnalyticsRepository = Depends(get_analytics_repository),
) -> dict:
    """Count the responses of one survey."""
    try:
        count = repository.get_response_count(survey_id)
    except AnalyticsQueryError as e:
        logger.error(f"Error in GET /api/survey-responses/{survey_id}/count: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {"success": True, "count": count}

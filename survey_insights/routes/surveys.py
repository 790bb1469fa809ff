"""Per-survey endpoints: responses, statistics, import and export.

Every endpoint returns a result or a typed HTTP error. The cached platform
health probe runs first; when the API is down the local store is served
without attempting a fetch. Fetch failures also degrade to the local store,
except authentication failures, which are reported as 401 so the client
can authenticate.
"""

from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from survey_insights.logging_config import get_logger
from survey_insights.routes.dependencies import (
    get_bearer_token,
    get_importer,
    get_loader,
    get_local_store,
    get_response_source,
)
from survey_insights.schemas.survey import Survey
from survey_insights.services import exporter
from survey_insights.services.importer import ImportRejectedError, ResponseImporter, decode_upload
from survey_insights.services.local_store import LocalResponseStore, LocalStoreError
from survey_insights.services.platform_client import RemoteUnavailable
from survey_insights.services.response_source import FetchResult, ResponseSource
from survey_insights.services.statistics import compute_survey_statistics
from survey_insights.services.survey_loader import (
    SurveyLoader,
    SurveyNotFoundError,
    SurveyValidationError,
)

logger = get_logger(__name__)

router = APIRouter()


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


def _load_survey(loader: SurveyLoader, survey_id: str) -> Survey:
    try:
        return loader.load_survey(survey_id)
    except SurveyNotFoundError:
        raise HTTPException(status_code=404, detail=f"Survey '{survey_id}' not found")
    except SurveyValidationError as e:
        logger.error(f"Invalid definition for survey {survey_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Survey '{survey_id}' definition is invalid")


async def _fetch(
    source: ResponseSource,
    survey_id: str,
    exercise_id: Optional[str],
    game_config_id: Optional[str],
    use_cache: bool,
    token: Optional[str],
) -> FetchResult:
    health = await source.check_health(token=token)
    if not health.available:
        return source.local_responses(
            survey_id,
            RemoteUnavailable(reason="Platform API health check failed"),
        )

    result = await source.fetch_responses(
        survey_id,
        exercise_id=exercise_id,
        game_config_id=game_config_id,
        use_cache=use_cache,
        token=token,
    )
    if result.auth_required:
        raise HTTPException(
            status_code=401,
            detail="Authentication required by the platform API",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return result


@router.get("/api/surveys")
async def list_surveys(loader: SurveyLoader = Depends(get_loader)) -> dict:
    """List the ids of the available survey definitions."""
    survey_ids = loader.list_surveys()
    return {"success": True, "data": survey_ids, "count": len(survey_ids)}


@router.get("/api/surveys/{survey_id}/responses")
async def get_survey_responses(
    survey_id: str,
    exercise_id: Optional[str] = Query(None, alias="exerciseId"),
    game_config_id: Optional[str] = Query(None, alias="gameConfigId"),
    use_cache: bool = Query(True, alias="useCache"),
    source: ResponseSource = Depends(get_response_source),
    token: Optional[str] = Depends(get_bearer_token),
) -> dict:
    """Fetch a survey's responses from the platform, cache or local store."""
    result = await _fetch(source, survey_id, exercise_id, game_config_id, use_cache, token)
    return {
        "success": True,
        "source": result.status.value,
        "data": [response.to_wire() for response in result.responses],
        "count": len(result.responses),
    }


@router.get("/api/surveys/{survey_id}/statistics")
async def get_survey_statistics(
    survey_id: str,
    exercise_id: Optional[str] = Query(None, alias="exerciseId"),
    game_config_id: Optional[str] = Query(None, alias="gameConfigId"),
    use_cache: bool = Query(True, alias="useCache"),
    loader: SurveyLoader = Depends(get_loader),
    source: ResponseSource = Depends(get_response_source),
    token: Optional[str] = Depends(get_bearer_token),
) -> dict:
    """Compute statistics of a survey over its fetched responses."""
    survey = _load_survey(loader, survey_id)
    result = await _fetch(source, survey_id, exercise_id, game_config_id, use_cache, token)
    return compute_survey_statistics(survey, result.responses).to_wire()


@router.post("/api/surveys/{survey_id}/responses/import")
async def import_survey_responses(
    survey_id: str,
    file: UploadFile = File(...),
    loader: SurveyLoader = Depends(get_loader),
    importer: ResponseImporter = Depends(get_importer),
) -> dict:
    """Import a CSV or JSON response file into the local store.

    Rows without a survey id are attributed to ``survey_id``.
    """
    try:
        survey_title = loader.load_survey(survey_id).title
    except (SurveyNotFoundError, SurveyValidationError):
        survey_title = None

    try:
        content = decode_upload(await file.read())
        result = importer.import_file(
            file.filename or "",
            content,
            survey_id=survey_id,
            survey_title=survey_title,
        )
    except ImportRejectedError as e:
        logger.warning(f"Rejected import of {file.filename}: {e.message}", extra={"survey_id": survey_id})
        raise HTTPException(status_code=400, detail={"kind": e.kind.value, "message": e.message})
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        await file.close()

    return {
        "success": True,
        "imported": len(result.responses),
        "skipped": result.skipped,
    }


@router.get("/api/surveys/{survey_id}/export")
async def export_survey_responses(
    survey_id: str,
    format: ExportFormat = ExportFormat.CSV,
    loader: SurveyLoader = Depends(get_loader),
    source: ResponseSource = Depends(get_response_source),
    token: Optional[str] = Depends(get_bearer_token),
) -> Response:
    """Download a survey's responses as CSV or JSON."""
    survey = _load_survey(loader, survey_id)
    result = await _fetch(source, survey_id, None, None, True, token)

    if format == ExportFormat.CSV:
        body = exporter.export_csv(result.responses, survey)
        media_type = "text/csv"
    else:
        body = exporter.export_json(result.responses, survey)
        media_type = "application/json"

    filename = exporter.export_filename(survey, format.value)
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/api/responses")
async def clear_local_responses(
    store: LocalResponseStore = Depends(get_local_store),
    source: ResponseSource = Depends(get_response_source),
) -> dict:
    """Delete every response in the local store and drop cached fetches."""
    try:
        removed = store.clear()
    except LocalStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    source.clear_cache()
    return {"success": True, "deleted": removed}

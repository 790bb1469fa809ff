"""Shared FastAPI dependencies.

Services are process-wide singletons so the response and health caches
survive between requests. Tests replace them through
``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Header

from survey_insights.config import get_settings
from survey_insights.models.database import SessionLocal, create_db_engine
from survey_insights.services.analytics_repository import AnalyticsRepository
from survey_insights.services.importer import ResponseImporter
from survey_insights.services.local_store import LocalResponseStore
from survey_insights.services.platform_client import create_platform_client
from survey_insights.services.response_source import ResponseSource, create_response_source
from survey_insights.services.survey_loader import SurveyLoader, get_survey_loader


@lru_cache
def get_local_store() -> LocalResponseStore:
    return LocalResponseStore(SessionLocal)


@lru_cache
def get_response_source() -> ResponseSource:
    return create_response_source(create_platform_client(), get_local_store())


@lru_cache
def get_importer() -> ResponseImporter:
    return ResponseImporter(get_local_store())


@lru_cache
def get_analytics_repository() -> AnalyticsRepository:
    settings = get_settings()
    engine = create_db_engine(settings.get_analytics_database_url())
    return AnalyticsRepository(engine, settings.analytics_table_name)


def get_loader() -> SurveyLoader:
    return get_survey_loader()


def get_bearer_token(
    authorization: Annotated[Optional[str], Header()] = None
) -> Optional[str]:
    """Bearer token of the incoming request, forwarded to the platform API."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()

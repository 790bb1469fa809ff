"""Unified response fetching across the platform API, cache and local store.

Per fetch:

1. Cache check: a fresh entry for (survey, exercise, game config) wins.
2. Remote fetch: platform records are mapped and filtered by survey id,
   then cached.
3. Remote unavailable: the local store is served instead (also reachable
   directly through ``local_responses`` when a health probe failed).
4. Authentication required: reported as such, without falling back, so the
   caller can authenticate and retry.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from survey_insights.config import get_settings
from survey_insights.logging_config import get_logger
from survey_insights.schemas.platform import GameDataQuery
from survey_insights.schemas.response import SurveyResponse
from survey_insights.services.cache import TTLCache
from survey_insights.services.local_store import LocalResponseStore, LocalStoreError
from survey_insights.services.platform_client import (
    PlatformClient,
    RemoteAuthRequired,
    RemoteOk,
    RemoteUnavailable,
)
from survey_insights.services.response_mapper import MappingHints, RecordSource, map_rows

logger = get_logger(__name__)

RESPONSE_CACHE_TTL_SECONDS = 5 * 60
HEALTH_CACHE_TTL_SECONDS = 60

_HEALTH_CACHE_KEY = "platform"


class FetchStatus(str, Enum):
    """Where the responses of a fetch came from."""
    CACHE = "cache"
    REMOTE = "remote"
    FALLBACK = "fallback"
    AUTH_REQUIRED = "auth_required"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of ``ResponseSource.fetch_responses``.

    Attributes:
        status: Which state of the fetch produced the responses
        responses: Canonical responses (empty when authentication is required)
        skipped: Remote records that could not be mapped
        detail: Failure description for fallback and auth outcomes
    """
    status: FetchStatus
    responses: list[SurveyResponse] = field(default_factory=list)
    skipped: int = 0
    detail: Optional[str] = None

    @property
    def auth_required(self) -> bool:
        return self.status == FetchStatus.AUTH_REQUIRED


@dataclass(frozen=True)
class ApiHealth:
    """Result of a platform health probe.

    ``available`` is also True when the API needs authentication.
    """
    available: bool
    needs_auth: bool = False


class ResponseSource:
    """Orchestrates remote fetches with caching and local fallback.

    Args:
        client: Platform API client
        store: Local fallback store
        response_ttl: Seconds a fetched result stays cached
        health_ttl: Seconds a health probe result stays cached
        clock: Monotonic seconds source shared by both caches
    """

    def __init__(
        self,
        client: PlatformClient,
        store: LocalResponseStore,
        response_ttl: float = RESPONSE_CACHE_TTL_SECONDS,
        health_ttl: float = HEALTH_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.store = store
        self._responses: TTLCache[list[SurveyResponse]] = TTLCache(response_ttl, clock)
        self._health: TTLCache[ApiHealth] = TTLCache(health_ttl, clock)

    async def fetch_responses(
        self,
        survey_id: str,
        exercise_id: Optional[str] = None,
        game_config_id: Optional[str] = None,
        use_cache: bool = True,
        token: Optional[str] = None,
    ) -> FetchResult:
        """Fetch the responses of one survey.

        Args:
            survey_id: Survey whose responses are wanted
            exercise_id: Platform exercise filter
            game_config_id: Platform game config filter
            use_cache: Read and populate the response cache
            token: Bearer token for the platform API

        Returns:
            FetchResult; never raises for remote or store failures
        """
        cache_key = (survey_id, exercise_id, game_config_id)
        if use_cache:
            cached = self._responses.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for {cache_key}", extra={"survey_id": survey_id})
                return FetchResult(status=FetchStatus.CACHE, responses=list(cached))

        query = GameDataQuery(
            survey_id=survey_id,
            exercise_id=exercise_id,
            game_config_id=game_config_id,
        )
        outcome = await self.client.fetch_game_data(query, token=token)

        if isinstance(outcome, RemoteOk):
            responses, skipped = map_rows(
                outcome.records,
                MappingHints(
                    source=RecordSource.API,
                    survey_id_filter=survey_id,
                    require_survey_fields=True,
                ),
            )
            if use_cache:
                self._responses.set(cache_key, list(responses))
            logger.info(
                f"Fetched {len(responses)} responses from platform API",
                extra={"survey_id": survey_id},
            )
            return FetchResult(status=FetchStatus.REMOTE, responses=responses, skipped=skipped)

        if isinstance(outcome, RemoteAuthRequired):
            return FetchResult(
                status=FetchStatus.AUTH_REQUIRED,
                detail=f"Platform API returned {outcome.status_code}",
            )

        return self.local_responses(survey_id, outcome)

    def local_responses(self, survey_id: str, outcome: RemoteUnavailable) -> FetchResult:
        """Serve a survey's responses from the local store.

        Used when the platform API is unavailable, either after a failed
        fetch or when a health probe already reported it down.
        """
        if outcome.expected:
            logger.debug(
                f"Platform API unavailable, using local store: {outcome.reason}",
                extra={"survey_id": survey_id},
            )
        else:
            logger.warning(
                f"Error loading responses from platform API, using local store: {outcome.reason}",
                extra={"survey_id": survey_id},
            )

        try:
            responses = self.store.list(survey_id)
        except LocalStoreError as e:
            logger.error(f"Local fallback store unavailable: {e}", extra={"survey_id": survey_id})
            responses = []

        return FetchResult(status=FetchStatus.FALLBACK, responses=responses, detail=outcome.reason)

    async def check_health(self, force: bool = False, token: Optional[str] = None) -> ApiHealth:
        """Probe platform availability, cached for a minute.

        Args:
            force: Ignore the cached result
            token: Bearer token for the probe

        Returns:
            ApiHealth
        """
        if not force:
            cached = self._health.get(_HEALTH_CACHE_KEY)
            if cached is not None:
                return cached

        outcome = await self.client.probe(token=token)
        if isinstance(outcome, RemoteOk):
            health = ApiHealth(available=True)
        elif isinstance(outcome, RemoteAuthRequired):
            health = ApiHealth(available=True, needs_auth=True)
        else:
            health = ApiHealth(available=False)

        logger.info(f"Platform API available: {health.available}, needs auth: {health.needs_auth}")
        self._health.set(_HEALTH_CACHE_KEY, health)
        return health

    def clear_health_cache(self) -> None:
        """Forget the cached probe result (e.g. after the platform starts)."""
        self._health.clear()

    def clear_cache(self) -> None:
        """Forget all cached responses."""
        self._responses.clear()


def create_response_source(client: PlatformClient, store: LocalResponseStore) -> ResponseSource:
    """Build an orchestrator using the TTLs from application settings."""
    settings = get_settings()
    return ResponseSource(
        client=client,
        store=store,
        response_ttl=settings.response_cache_ttl_seconds,
        health_ttl=settings.health_cache_ttl_seconds,
    )

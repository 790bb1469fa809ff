"""Async client for the platform game-data API.

Calls never raise for transport or HTTP failures. They return one of three
outcomes so the caller's fallback policy is explicit:

- ``RemoteOk``: records fetched
- ``RemoteAuthRequired``: the API answered 401/403
- ``RemoteUnavailable``: timeout, connection failure or any other error
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import httpx
from pydantic import ValidationError

from survey_insights.config import get_settings
from survey_insights.logging_config import get_logger
from survey_insights.schemas.platform import GameDataDTO, GameDataList, GameDataQuery

logger = get_logger(__name__)

LIST_PATH = "/api/gameData"
SEARCH_PATH = "/api/searchGameData"

AUTH_STATUS_CODES = {401, 403}


@dataclass(frozen=True)
class RemoteOk:
    """Successful fetch; ``records`` are validated game-data dicts."""
    records: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class RemoteAuthRequired:
    """The API exists but rejected the request's credentials."""
    status_code: int


@dataclass(frozen=True)
class RemoteUnavailable:
    """The API could not be used.

    Attributes:
        reason: Human-readable failure description
        expected: True for failures that are normal when the platform is
            not running (timeouts, refused connections)
    """
    reason: str
    expected: bool = True


RemoteResult = Union[RemoteOk, RemoteAuthRequired, RemoteUnavailable]


class PlatformClient:
    """Client for ``GET /api/gameData`` and ``GET /api/searchGameData``.

    A fresh ``httpx.AsyncClient`` is opened per call inside an async
    context manager, so a cancelled call leaves no open connection behind.

    Args:
        base_url: Platform base URL (without ``/api``)
        token: Default bearer token
        timeout: Seconds allowed for data fetches
        health_timeout: Seconds allowed for health probes
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 5.0,
        health_timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.health_timeout = health_timeout
        self._transport = transport

    def _headers(self, token: Optional[str]) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Cache-Control": "no-cache"}
        bearer = token or self.token
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    async def _send(
        self,
        path: str,
        params: dict[str, str],
        timeout: float,
        token: Optional[str],
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=self._transport,
        ) as client:
            return await client.get(path, params=params, headers=self._headers(token))

    async def _get(
        self,
        path: str,
        params: dict[str, str],
        timeout: float,
        token: Optional[str],
    ) -> Union[httpx.Response, RemoteUnavailable]:
        # httpx timeouts apply per connect/read/write step; wait_for caps the whole call
        try:
            return await asyncio.wait_for(self._send(path, params, timeout, token), timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return RemoteUnavailable(reason=f"Request to {path} timed out after {timeout}s")
        except httpx.ConnectError as e:
            return RemoteUnavailable(reason=f"Could not connect to {self.base_url}: {e}")
        except httpx.HTTPError as e:
            return RemoteUnavailable(reason=f"Request to {path} failed: {e}", expected=False)

    async def fetch_game_data(
        self,
        query: Optional[GameDataQuery] = None,
        token: Optional[str] = None,
    ) -> RemoteResult:
        """Fetch game-data records, using the search endpoint when filtered.

        Args:
            query: Platform filters (exercise, game config, organization, user)
            token: Bearer token overriding the client default

        Returns:
            RemoteOk, RemoteAuthRequired or RemoteUnavailable
        """
        params = (query or GameDataQuery()).search_params()
        path = SEARCH_PATH if params else LIST_PATH

        response = await self._get(path, params, self.timeout, token)
        if isinstance(response, RemoteUnavailable):
            return response

        if response.status_code in AUTH_STATUS_CODES:
            logger.warning(f"Platform API requires authentication (status {response.status_code})")
            return RemoteAuthRequired(status_code=response.status_code)

        if not response.is_success:
            logger.error(
                f"Platform API request failed: {response.status_code} {response.reason_phrase}"
            )
            return RemoteUnavailable(
                reason=f"API request failed: {response.status_code} {response.reason_phrase}",
                expected=False,
            )

        try:
            body = response.json()
            if isinstance(body, list):
                body = {"gameData": body}
            listing = GameDataList.model_validate(body)
        except (ValueError, ValidationError) as e:
            logger.error(f"Platform API returned an unreadable body: {e}")
            return RemoteUnavailable(reason=f"Unreadable response body: {e}", expected=False)

        records = []
        for index, item in enumerate(listing.gameData):
            try:
                dto = GameDataDTO.model_validate(item)
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed game data record {index}: {e}",
                    extra={"source": "api", "row_index": index},
                )
                continue
            records.append(dto.model_dump(exclude_none=True))

        logger.debug(f"Fetched {len(records)} game data records from {path}")
        return RemoteOk(records=records)

    async def probe(self, token: Optional[str] = None) -> RemoteResult:
        """Cheap availability check against the list endpoint.

        The body is not read; any 2xx is ``RemoteOk``.
        """
        response = await self._get(LIST_PATH, {}, self.health_timeout, token)
        if isinstance(response, RemoteUnavailable):
            logger.debug(f"Platform health check failed: {response.reason}")
            return response

        logger.debug(f"Platform health check status: {response.status_code}")
        if response.status_code in AUTH_STATUS_CODES:
            return RemoteAuthRequired(status_code=response.status_code)
        if not response.is_success:
            return RemoteUnavailable(
                reason=f"Health check returned {response.status_code}",
                expected=False,
            )
        return RemoteOk()


def create_platform_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> PlatformClient:
    """Build a client from application settings."""
    settings = get_settings()
    return PlatformClient(
        base_url=settings.platform_api_base_url,
        token=settings.platform_api_token,
        timeout=settings.platform_timeout_seconds,
        health_timeout=settings.health_timeout_seconds,
        transport=transport,
    )

"""Unit tests for response fetching with cache and local fallback."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from survey_insights.services.local_store import LocalStoreError
from survey_insights.services.platform_client import (
    PlatformClient,
    RemoteAuthRequired,
    RemoteOk,
    RemoteUnavailable,
)
from survey_insights.services.response_source import ApiHealth, FetchStatus, ResponseSource


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _record(record_id: str, survey_id: str) -> dict:
    return {
        "id": record_id,
        "data": json.dumps({"surveyId": survey_id, "answers": {"q1": "Yes"}}),
        "creationTimestamp": 1718000000000,
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client():
    client = MagicMock(spec=PlatformClient)
    client.fetch_game_data = AsyncMock()
    client.probe = AsyncMock()
    return client


@pytest.fixture
def source(client, local_store, clock):
    return ResponseSource(client, local_store, clock=clock)


class TestFetchResponses:
    """Tests for ResponseSource.fetch_responses()."""

    @pytest.mark.asyncio
    async def test_remote_responses_filtered_by_survey(self, source, client):
        client.fetch_game_data.return_value = RemoteOk(records=[
            _record("gd_1", "s1"),
            _record("gd_2", "other"),
            {"id": "gd_3", "data": json.dumps({"score": 10})},
        ])

        result = await source.fetch_responses("s1")

        assert result.status == FetchStatus.REMOTE
        assert [response.id for response in result.responses] == ["gd_1"]
        assert result.skipped == 2

    @pytest.mark.asyncio
    async def test_second_fetch_served_from_cache(self, source, client, clock):
        client.fetch_game_data.return_value = RemoteOk(records=[_record("gd_1", "s1")])

        await source.fetch_responses("s1")
        clock.now = 299
        result = await source.fetch_responses("s1")

        assert result.status == FetchStatus.CACHE
        assert [response.id for response in result.responses] == ["gd_1"]
        assert client.fetch_game_data.await_count == 1

    @pytest.mark.asyncio
    async def test_cache_expires(self, source, client, clock):
        client.fetch_game_data.return_value = RemoteOk(records=[_record("gd_1", "s1")])

        await source.fetch_responses("s1")
        clock.now = 300
        result = await source.fetch_responses("s1")

        assert result.status == FetchStatus.REMOTE
        assert client.fetch_game_data.await_count == 2

    @pytest.mark.asyncio
    async def test_cache_key_includes_filters(self, source, client):
        client.fetch_game_data.return_value = RemoteOk(records=[])

        await source.fetch_responses("s1")
        result = await source.fetch_responses("s1", exercise_id="ex1")

        assert result.status == FetchStatus.REMOTE
        query = client.fetch_game_data.await_args.args[0]
        assert query.exercise_id == "ex1"

    @pytest.mark.asyncio
    async def test_use_cache_false_bypasses_cache(self, source, client):
        client.fetch_game_data.return_value = RemoteOk(records=[])

        await source.fetch_responses("s1")
        result = await source.fetch_responses("s1", use_cache=False)

        assert result.status == FetchStatus.REMOTE
        assert client.fetch_game_data.await_count == 2

    @pytest.mark.asyncio
    async def test_falls_back_to_local_store(self, source, client, local_store, make_response):
        local_store.append([make_response(), make_response(survey_id="other")])
        client.fetch_game_data.return_value = RemoteUnavailable(reason="refused")

        result = await source.fetch_responses("s1")

        assert result.status == FetchStatus.FALLBACK
        assert [response.survey_id for response in result.responses] == ["s1"]
        assert result.detail == "refused"

    @pytest.mark.asyncio
    async def test_fallback_is_not_cached(self, source, client):
        client.fetch_game_data.return_value = RemoteUnavailable(reason="refused")

        await source.fetch_responses("s1")
        await source.fetch_responses("s1")

        assert client.fetch_game_data.await_count == 2

    def test_local_responses_without_remote_fetch(self, source, client, local_store, make_response):
        local_store.append([make_response(), make_response(survey_id="other")])

        result = source.local_responses("s1", RemoteUnavailable(reason="health check failed"))

        assert result.status == FetchStatus.FALLBACK
        assert [response.survey_id for response in result.responses] == ["s1"]
        assert result.detail == "health check failed"
        client.fetch_game_data.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_failure_logs_warning(self, source, client):
        client.fetch_game_data.return_value = RemoteUnavailable(reason="500", expected=False)

        with patch("survey_insights.services.response_source.logger") as mock_logger:
            result = await source.fetch_responses("s1")

        assert result.status == FetchStatus.FALLBACK
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_broken_store_yields_empty_fallback(self, client, clock):
        store = MagicMock()
        store.list.side_effect = LocalStoreError("disk gone")
        client.fetch_game_data.return_value = RemoteUnavailable(reason="refused")

        result = await ResponseSource(client, store, clock=clock).fetch_responses("s1")

        assert result.status == FetchStatus.FALLBACK
        assert result.responses == []

    @pytest.mark.asyncio
    async def test_auth_required_does_not_fall_back(self, source, client, local_store, make_response):
        local_store.append([make_response()])
        client.fetch_game_data.return_value = RemoteAuthRequired(status_code=401)

        result = await source.fetch_responses("s1")

        assert result.status == FetchStatus.AUTH_REQUIRED
        assert result.auth_required
        assert result.responses == []

    @pytest.mark.asyncio
    async def test_clear_cache(self, source, client):
        client.fetch_game_data.return_value = RemoteOk(records=[])

        await source.fetch_responses("s1")
        source.clear_cache()
        result = await source.fetch_responses("s1")

        assert result.status == FetchStatus.REMOTE


class TestCheckHealth:
    """Tests for ResponseSource.check_health()."""

    @pytest.mark.asyncio
    async def test_available(self, source, client):
        client.probe.return_value = RemoteOk()
        assert await source.check_health() == ApiHealth(available=True, needs_auth=False)

    @pytest.mark.asyncio
    async def test_needs_auth_counts_as_available(self, source, client):
        client.probe.return_value = RemoteAuthRequired(status_code=403)
        assert await source.check_health() == ApiHealth(available=True, needs_auth=True)

    @pytest.mark.asyncio
    async def test_unavailable(self, source, client):
        client.probe.return_value = RemoteUnavailable(reason="refused")
        assert await source.check_health() == ApiHealth(available=False)

    @pytest.mark.asyncio
    async def test_result_cached_for_a_minute(self, source, client, clock):
        client.probe.return_value = RemoteUnavailable(reason="refused")
        await source.check_health()

        client.probe.return_value = RemoteOk()
        clock.now = 59
        assert (await source.check_health()).available is False

        clock.now = 60
        assert (await source.check_health()).available is True

    @pytest.mark.asyncio
    async def test_force_and_clear(self, source, client):
        client.probe.return_value = RemoteUnavailable(reason="refused")
        await source.check_health()

        client.probe.return_value = RemoteOk()
        assert (await source.check_health(force=True)).available is True

        client.probe.return_value = RemoteUnavailable(reason="refused")
        source.clear_health_cache()
        assert (await source.check_health()).available is False

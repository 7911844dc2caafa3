"""
Unit tests for the upstream HTTP client
"""

import pytest
import pytest_asyncio
import httpx
from datetime import date, datetime, timezone
from core.exceptions import UpstreamError, UpstreamFailure, ValidationError
from ingestion.client import UpstreamClient, date_range


@pytest_asyncio.fixture
async def make_client(settings_factory, recording_sleep):
    """Build clients over a MockTransport handler; closes them afterwards"""
    clients = []

    def make(handler, **overrides) -> UpstreamClient:
        client = UpstreamClient(
            settings_factory(**overrides),
            transport=httpx.MockTransport(handler),
            sleep=recording_sleep
        )
        clients.append(client)
        return client

    yield make

    for client in clients:
        await client.aclose()


class TestRetry:
    """Backoff and failure classification"""

    @pytest.mark.asyncio
    async def test_fails_twice_then_succeeds(self, make_client, recording_sleep):
        """Two failures sleep exactly twice (1s, 2s) and return the third response"""
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) <= 2:
                return httpx.Response(503, text="busy")
            return httpx.Response(200, json={"latitude": 1.0})

        client = make_client(handler)
        result = await client.fetch_telemetry()

        assert result == {"latitude": 1.0}
        assert len(attempts) == 3
        assert recording_sleep.delays == [1, 2]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, make_client, recording_sleep):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(500, text="boom")

        client = make_client(handler)

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_telemetry()

        error = exc_info.value
        assert error.failure == UpstreamFailure.STATUS
        assert error.upstream_status == 500
        assert "500" in error.message
        assert len(attempts) == 4
        assert recording_sleep.delays == [1, 2, 4]

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failed_attempt(self, make_client, recording_sleep):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json={"ok": True})

        client = make_client(handler)

        assert await client.fetch_spacex_next() == {"ok": True}
        assert recording_sleep.delays == [1]

    @pytest.mark.asyncio
    async def test_timeout_failure_kind(self, make_client):
        def handler(request):
            raise httpx.ConnectTimeout("connect timed out", request=request)

        client = make_client(handler, HTTP_MAX_RETRIES=0)

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_telemetry()

        assert exc_info.value.failure == UpstreamFailure.TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_failure(self, make_client, recording_sleep):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        client = make_client(handler, HTTP_MAX_RETRIES=1)

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_telemetry()

        assert exc_info.value.failure == UpstreamFailure.TRANSPORT
        assert isinstance(exc_info.value.original_exception, httpx.ConnectError)
        assert recording_sleep.delays == [1]

    @pytest.mark.asyncio
    async def test_malformed_body(self, make_client):
        def handler(request):
            return httpx.Response(200, content=b"<html>not json</html>")

        client = make_client(handler, HTTP_MAX_RETRIES=0)

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_apod()

        assert exc_info.value.failure == UpstreamFailure.MALFORMED

    @pytest.mark.asyncio
    async def test_scalar_json_is_malformed(self, make_client):
        def handler(request):
            return httpx.Response(200, json=42)

        client = make_client(handler, HTTP_MAX_RETRIES=0)

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_apod()

        assert exc_info.value.failure == UpstreamFailure.MALFORMED

    @pytest.mark.asyncio
    async def test_backoff_is_capped(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json={}))

        assert [client.backoff_delay(n) for n in range(7)] == [1, 2, 4, 8, 16, 32, 32]


class TestNamedSources:
    """Per-source URLs, parameters and headers"""

    @pytest.mark.asyncio
    async def test_nasa_api_key_is_injected(self, make_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"title": "APOD"})

        client = make_client(handler, NASA_API_KEY="secret-key")
        await client.fetch_apod()

        params = seen[0].url.params
        assert params["api_key"] == "secret-key"
        assert params["thumbs"] == "true"

    @pytest.mark.asyncio
    async def test_no_api_key_when_not_configured(self, make_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"hits": {"hits": []}})

        client = make_client(handler)
        await client.fetch_catalog()

        assert "api_key" not in seen[0].url.params

    @pytest.mark.asyncio
    async def test_neo_defaults_to_two_day_window(self, make_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"element_count": 0})

        client = make_client(handler)
        await client.fetch_neo()

        params = seen[0].url.params
        start = date.fromisoformat(params["start_date"])
        end = date.fromisoformat(params["end_date"])
        assert (end - start).days == 2

    @pytest.mark.asyncio
    async def test_donki_uses_camel_case_dates(self, make_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        client = make_client(handler)
        await client.fetch_donki_cme(start_date="2024-01-01", end_date="2024-01-06")

        assert seen[0].url.path == "/DONKI/CME"
        assert seen[0].url.params["startDate"] == "2024-01-01"
        assert seen[0].url.params["endDate"] == "2024-01-06"

    @pytest.mark.asyncio
    async def test_jwst_sends_api_key_header(self, make_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"body": []})

        client = make_client(
            handler,
            JWST_API_KEY="jwst-key",
            JWST_PROGRAM_ID="2731",
            JWST_EMAIL="ops@example.com"
        )
        await client.fetch_jwst_program(page=2, per_page=12)

        request = seen[0]
        assert request.headers["x-api-key"] == "jwst-key"
        assert request.url.path == "/program/id/2731"
        assert request.url.params["page"] == "2"
        assert request.url.params["perPage"] == "12"
        assert request.url.params["email"] == "ops@example.com"

    @pytest.mark.asyncio
    async def test_fetch_dispatches_by_source_name(self, make_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"name": "Starlink"})

        client = make_client(handler)

        assert await client.fetch("spacex") == {"name": "Starlink"}
        assert seen[0].url.host == "api.spacexdata.com"

        with pytest.raises(KeyError):
            await client.fetch("unknown")

    def test_invalid_configured_url_is_rejected(self, settings_factory):
        with pytest.raises(ValidationError):
            UpstreamClient(settings_factory(APOD_URL="ftp://example.com/apod"))


def test_date_range():
    today = datetime(2024, 3, 10, 15, 30, tzinfo=timezone.utc)

    assert date_range(5, today=today) == ("2024-03-05", "2024-03-10")
    assert date_range(2, today=today) == ("2024-03-08", "2024-03-10")

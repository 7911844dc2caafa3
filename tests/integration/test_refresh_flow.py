"""
Integration tests: upstream -> runner -> store -> cache through the service
"""

import pytest
import pytest_asyncio
import httpx
from core.exceptions import UpstreamError, ValidationError
from services.container import ServiceContainer


@pytest_asyncio.fixture
async def container(test_settings, fake_upstream, recording_sleep, memory_backend):
    container = ServiceContainer(
        test_settings,
        transport=httpx.MockTransport(fake_upstream),
        sleep=recording_sleep,
        cache_backend=memory_backend
    )
    await container.start()

    yield container

    await container.close()


@pytest.fixture
def service(container):
    return container.service


@pytest.mark.asyncio
async def test_telemetry_refresh_invalidates_latest(service, fake_upstream, memory_backend):
    assert await service.get_latest_telemetry() is None

    result = await service.refresh("iss")
    assert result.records_written == 1

    first = await service.get_latest_telemetry()
    assert first.payload["latitude"] == 50.11
    assert await memory_backend.get("telemetry:latest") is not None

    fake_upstream.payloads["iss"] = {"latitude": 51.0, "longitude": 9.0, "velocity": 27590.0}
    await service.refresh("iss")

    second = await service.get_latest_telemetry()
    assert second.id > first.id
    assert second.payload["latitude"] == 51.0


@pytest.mark.asyncio
async def test_trend_after_two_fetches(service, fake_upstream):
    trend = await service.get_trend()
    assert trend.movement is False
    assert trend.delta_km == 0.0

    await service.refresh("iss")
    fake_upstream.payloads["iss"] = {"latitude": 52.0, "longitude": 10.0, "velocity": "27601.5"}
    await service.refresh("iss")

    trend = await service.get_trend()
    assert trend.movement is True
    assert trend.delta_km > 100
    assert trend.velocity_kmh == 27601.5
    assert trend.dt_sec >= 0


@pytest.mark.asyncio
async def test_failed_fetch_keeps_serving_cached_data(service, fake_upstream, recording_sleep):
    await service.refresh("iss")
    cached = await service.get_latest_telemetry()

    fake_upstream.fail("iss", status=503)
    with pytest.raises(UpstreamError) as exc_info:
        await service.refresh("iss")

    assert exc_info.value.upstream_status == 503
    assert recording_sleep.delays == [1, 2, 4]
    assert fake_upstream.calls_to("iss") == 5
    assert (await service.get_latest_telemetry()).id == cached.id


@pytest.mark.asyncio
async def test_retry_then_success(service, fake_upstream, recording_sleep):
    fake_upstream.fail("apod", status=502, times=2)

    result = await service.refresh("apod")

    assert result.records_written == 1
    assert recording_sleep.delays == [1, 2]
    assert fake_upstream.calls_to("apod") == 3


@pytest.mark.asyncio
async def test_catalog_sync_and_list(service, fake_upstream):
    assert await service.list_catalog() == []
    assert await service.count_catalog() == 0

    written = await service.sync_catalog()
    assert written == 3

    items = await service.list_catalog()
    assert len(items) == 3
    assert await service.count_catalog() == 3

    keyed = {i.business_key: i for i in items if i.business_key}
    assert keyed["OSD-1"].status == "public"
    assert keyed["OSD-2"].status == "draft"

    fake_upstream.payloads["osdr"] = {"items": [{"dataset_id": "OSD-1", "title": "Renamed"}]}
    assert await service.sync_catalog() == 1

    items = await service.list_catalog(limit=100)
    assert len(items) == 3
    assert {i.title for i in items if i.business_key == "OSD-1"} == {"Renamed"}


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 101, -1])
async def test_list_limit_out_of_range(service, fake_upstream, limit):
    with pytest.raises(ValidationError):
        await service.list_catalog(limit)

    assert fake_upstream.calls == []


@pytest.mark.asyncio
async def test_refresh_all_snapshots_skips_failures(service, fake_upstream):
    fake_upstream.fail("neo", status=500)

    refreshed = await service.refresh_all_snapshots()

    assert refreshed == ["apod", "flr", "cme", "spacex"]
    assert (await service.get_latest("apod")).payload["title"] == "Pillars of Creation"
    assert await service.get_latest("neo") is None


@pytest.mark.asyncio
async def test_snapshot_refresh_invalidates_latest(service, fake_upstream):
    await service.refresh("spacex")
    assert (await service.get_latest("spacex")).payload["name"] == "Starlink 7-1"

    fake_upstream.payloads["spacex"] = {"name": "Crew-9"}
    await service.refresh("spacex")

    assert (await service.get_latest("spacex")).payload["name"] == "Crew-9"


@pytest.mark.asyncio
@pytest.mark.parametrize("source", ["unknown", "bad@id", "", "iss"])
async def test_get_latest_rejects_invalid_sources(service, source):
    with pytest.raises(ValidationError) as exc_info:
        await service.get_latest(source)

    assert exc_info.value.code == "INVALID_SOURCE"


@pytest.mark.asyncio
async def test_refresh_rejects_unknown_source(service, fake_upstream):
    with pytest.raises(ValidationError):
        await service.refresh("jwst")

    assert fake_upstream.calls == []


@pytest.mark.asyncio
async def test_summary(service):
    empty = await service.get_summary()
    assert empty == {"osdr_count": 0, "sources": {}}

    await service.refresh("iss")
    await service.refresh("apod")
    await service.sync_catalog()

    summary = await service.get_summary()
    assert summary["osdr_count"] == 3
    assert set(summary["sources"]) == {"apod"}
    assert summary["sources"]["apod"]["payload"]["media_type"] == "image"
    assert isinstance(summary["sources"]["apod"]["at"], str)
    assert summary["iss"]["payload"]["latitude"] == 50.11


@pytest.mark.asyncio
async def test_health(service):
    health = await service.health()

    assert health["database_connected"] is True
    assert health["cache_connected"] is True
    assert health["scheduler_running"] is False
    assert "iss" in health["sources"]
    assert "jwst" not in health["sources"]


@pytest.mark.asyncio
async def test_jwst_source_when_configured(settings_factory, fake_upstream, recording_sleep):
    settings = settings_factory(JWST_API_KEY="k", JWST_PROGRAM_ID="2731")
    fake_upstream.routes["https://api.jwstapi.com/program/id/2731"] = "jwst"
    fake_upstream.payloads["jwst"] = {"statusCode": 200, "body": [{"id": "jw02731"}]}

    container = ServiceContainer(
        settings,
        transport=httpx.MockTransport(fake_upstream),
        sleep=recording_sleep
    )
    await container.start()
    try:
        assert container.sources["jwst"].interval_seconds == 3600
        await container.service.refresh("jwst")
        latest = await container.service.get_latest("jwst")
        assert latest.payload["body"][0]["id"] == "jw02731"
        assert fake_upstream.calls[-1].headers["x-api-key"] == "k"
    finally:
        await container.close()


@pytest.mark.asyncio
async def test_long_catalog_key_and_status_are_stored(service, fake_upstream):
    long_key = "OSD-" + "9" * 296
    fake_upstream.payloads["osdr"] = {"items": [
        {"dataset_id": long_key, "title": "Long key", "status": "s" * 150},
        {"dataset_id": "OSD-10", "title": "Short"},
    ]}

    assert await service.sync_catalog() == 2

    item = await service.get_catalog_item(long_key)
    assert len(item.business_key) == 300
    assert item.status == "s" * 150


@pytest.mark.asyncio
async def test_catalog_item_lookup_is_invalidated_by_sync(service, fake_upstream, memory_backend):
    assert await service.get_catalog_item("OSD-1") is None

    await service.sync_catalog()
    assert (await service.get_catalog_item("OSD-1")).title == "Rodent Research 1"
    assert await memory_backend.get("catalog:item:OSD-1") is not None

    fake_upstream.payloads["osdr"] = [{"dataset_id": "OSD-1", "title": "Renamed"}]
    await service.sync_catalog()

    assert (await service.get_catalog_item("OSD-1")).title == "Renamed"

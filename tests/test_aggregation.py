"""
Tests for ProjectAggregator and tenant fingerprints
"""
import asyncio
import logging

import httpx
import pytest

from mintology_sdk import (
    AggregatedSnapshot,
    AggregationTimeoutError,
    ConfigurationError,
    InMemoryCache,
    MintologyClient,
    ProjectAggregator,
    StaticTenantKeyStore,
    UpstreamError,
    base62_encode,
    generate_tenant_fingerprint,
)
from mintology_sdk.aggregation import snapshot_cache_key

from .conftest import API_URL, KEY_OPTION, json_response

PROJECT_IDS = ("p1", "p2", "p3")


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _premints_url(pid: str) -> str:
    return f"{API_URL}{pid}/premints"


def _totals_url(pid: str) -> str:
    return f"{API_URL}analytics/tokens/totals?projectId={pid}"


def install_projects(mock_api, project_ids=PROJECT_IDS, delays=None, listing_delay=0.0):
    """Serve a project listing plus premints and totals for every project.

    Sub-responses echo the project id so correlation can be checked.
    """
    delays = delays or {}

    async def listing(request):
        await asyncio.sleep(listing_delay)
        return json_response({"data": [{"project_id": pid, "name": f"Project {pid}"} for pid in project_ids]})

    async def premints(request):
        pid = request.url.path.split("/")[-2]
        await asyncio.sleep(delays.get(pid, 0))
        return json_response({"data": [{"project": pid}]})

    async def totals(request):
        pid = request.url.params["projectId"]
        await asyncio.sleep(delays.get(pid, 0))
        return json_response({"projectId": pid, "total": len(pid)})

    mock_api.add_handler(listing, url=f"{API_URL}projects")
    for pid in project_ids:
        mock_api.add_handler(premints, url=_premints_url(pid))
        mock_api.add_handler(totals, url=_totals_url(pid))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryCache(clock=clock)


@pytest.fixture
def aggregator(client, cache):
    return ProjectAggregator(client, cache)


class TestFingerprint:
    """Tests for tenant fingerprints."""

    def test_pinned_values(self):
        """Should derive stable five-character fingerprints."""
        assert generate_tenant_fingerprint("test-key") == "0R8Tv"
        assert generate_tenant_fingerprint("tenant-a") == "0ZNNn"
        assert generate_tenant_fingerprint("tenant-b") == "0zR3i"

    def test_length_and_alphabet(self):
        """Should always be five base62 characters."""
        for key in ("", "a", "another-key", "k" * 500):
            fingerprint = generate_tenant_fingerprint(key)
            assert len(fingerprint) == 5
            assert fingerprint.isalnum()

    def test_base62(self):
        """Should encode hexadecimal in base62."""
        assert base62_encode("0") == ""
        assert base62_encode("3d") == "z"
        assert base62_encode("3e") == "10"
        assert base62_encode("62af87") == "R8Tv"


class TestRefresh:
    """Tests for snapshot refreshes."""

    async def test_merges_sub_data(self, aggregator, mock_api):
        """Should merge premints and totals into each project."""
        install_projects(mock_api)

        result = await aggregator.refresh_snapshot()

        snapshot = result.unwrap()
        assert snapshot.fingerprint == "0R8Tv"
        assert snapshot.project_ids() == list(PROJECT_IDS)
        for pid in PROJECT_IDS:
            entry = snapshot.get(pid)
            assert entry.premints == {"data": [{"project": pid}]}
            assert entry.token == {"projectId": pid, "total": len(pid)}
        assert snapshot.get("p1").model_dump()["name"] == "Project p1"

    async def test_keeps_vendor_field_types(self, aggregator, mock_api):
        """Should pass through project fields whatever type the vendor sends."""
        mock_api.add_response(
            url=f"{API_URL}projects",
            json={
                "data": [
                    {"project_id": 1, "status": {"code": "deployed"}, "contract_type": ["ERC721"]},
                    {"project_id": "p2", "status": 3, "wallet_type": None},
                ]
            },
        )
        for pid in ("1", "p2"):
            mock_api.add_response(url=_premints_url(pid), json={"data": []})
            mock_api.add_response(url=_totals_url(pid), json={"total": 0})

        snapshot = (await aggregator.refresh_snapshot()).unwrap()

        assert snapshot.project_ids() == ["1", "p2"]
        assert snapshot.get("1").status == {"code": "deployed"}
        assert snapshot.get("1").contract_type == ["ERC721"]
        assert snapshot.get("p2").status == 3
        assert snapshot.get("p2").premints == {"data": []}

    async def test_sub_requests_are_concurrent(self, aggregator, mock_api):
        """Should have every sub-request in flight at the same time."""
        expected = 2 * len(PROJECT_IDS)
        in_flight = 0
        everyone_waiting = asyncio.Event()

        async def listing(request):
            return json_response({"data": [{"project_id": pid} for pid in PROJECT_IDS]})

        async def barrier(request):
            nonlocal in_flight
            in_flight += 1
            if in_flight == expected:
                everyone_waiting.set()
            await asyncio.wait_for(everyone_waiting.wait(), timeout=2)
            return json_response({"ok": True})

        mock_api.add_handler(listing, url=f"{API_URL}projects")
        for pid in PROJECT_IDS:
            mock_api.add_handler(barrier, url=_premints_url(pid))
            mock_api.add_handler(barrier, url=_totals_url(pid))

        result = await aggregator.refresh_snapshot()

        assert result.is_ok
        assert in_flight == expected

    async def test_correlates_out_of_order_responses(self, aggregator, mock_api):
        """Should attach each response to its own project when they complete in reverse."""
        install_projects(mock_api, delays={"p1": 0.06, "p2": 0.03, "p3": 0.0})

        snapshot = (await aggregator.refresh_snapshot()).unwrap()

        for pid in PROJECT_IDS:
            assert snapshot.get(pid).premints == {"data": [{"project": pid}]}
            assert snapshot.get(pid).token["projectId"] == pid

    async def test_respects_concurrency_limit(self, client, cache, settings, mock_api):
        """Should keep at most max_concurrency sub-requests in flight."""
        aggregator = ProjectAggregator(client, cache, settings.model_copy(update={"max_concurrency": 2}))
        in_flight = 0
        peak = 0

        async def listing(request):
            return json_response({"data": [{"project_id": pid} for pid in PROJECT_IDS]})

        async def tracked(request):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return json_response({})

        mock_api.add_handler(listing, url=f"{API_URL}projects")
        for pid in PROJECT_IDS:
            mock_api.add_handler(tracked, url=_premints_url(pid))
            mock_api.add_handler(tracked, url=_totals_url(pid))

        assert (await aggregator.refresh_snapshot()).is_ok
        assert peak == 2

    async def test_partial_failure(self, aggregator, mock_api, caplog):
        """Should null only the failed fields and log a warning for each."""
        caplog.set_level(logging.WARNING, logger="mintology_sdk.aggregation")

        async def listing(request):
            return json_response({"data": [{"project_id": "p1"}, {"project_id": "p2"}]})

        mock_api.add_handler(listing, url=f"{API_URL}projects")
        mock_api.add_response(url=_premints_url("p1"), json={"data": []})
        mock_api.add_response(url=_totals_url("p1"), status_code=500, json={"message": "boom"})
        mock_api.add_exception(httpx.ConnectError("reset"), url=_premints_url("p2"))
        mock_api.add_response(url=_totals_url("p2"), json={"total": 3})

        snapshot = (await aggregator.refresh_snapshot()).unwrap()

        assert snapshot.get("p1").premints == {"data": []}
        assert snapshot.get("p1").token is None
        assert snapshot.get("p2").premints is None
        assert snapshot.get("p2").token == {"total": 3}
        warnings = [
            r for r in caplog.records
            if r.name == "mintology_sdk.aggregation" and r.levelno == logging.WARNING
        ]
        assert len(warnings) == 2

    async def test_listing_failure(self, aggregator, cache, mock_api):
        """Should fail the refresh and cache nothing when the listing fails."""
        mock_api.add_response(url=f"{API_URL}projects", status_code=503, json={"message": "down"})

        result = await aggregator.refresh_snapshot()

        assert isinstance(result.error, UpstreamError)
        assert await cache.get(snapshot_cache_key("0R8Tv")) is None

    async def test_empty_listing(self, aggregator, mock_api):
        """Should produce an empty snapshot without sub-requests."""
        mock_api.add_response(url=f"{API_URL}projects", json={"data": []})

        snapshot = (await aggregator.refresh_snapshot()).unwrap()

        assert snapshot.projects == []
        assert len(mock_api.requests) == 1

    async def test_missing_tenant_key(self, keyless_client, cache, mock_api):
        """Should fail locally without a tenant key."""
        aggregator = ProjectAggregator(keyless_client, cache)

        result = await aggregator.list_projects_with_derived_data()

        assert isinstance(result.error, ConfigurationError)
        assert mock_api.requests == []

    async def test_deadline(self, client, cache, settings, mock_api):
        """Should raise and leave the cache untouched when the deadline passes."""
        aggregator = ProjectAggregator(client, cache, settings.model_copy(update={"aggregation_deadline": 0.05}))
        install_projects(mock_api, delays={"p2": 5.0})

        with pytest.raises(AggregationTimeoutError):
            await aggregator.refresh_snapshot()

        assert await cache.get(snapshot_cache_key("0R8Tv")) is None

    async def test_single_flight(self, aggregator, mock_api):
        """Should share one refresh between concurrent callers."""
        install_projects(mock_api, listing_delay=0.02)

        first, second = await asyncio.gather(aggregator.refresh_snapshot(), aggregator.refresh_snapshot())

        assert first.unwrap() is second.unwrap()
        assert len(mock_api.requests_for("GET", f"{API_URL}projects")) == 1
        assert len(mock_api.requests) == 1 + 2 * len(PROJECT_IDS)


class TestSnapshotCache:
    """Tests for cached snapshots."""

    async def test_serves_cached_snapshot(self, aggregator, mock_api):
        """Should not hit the API again within the TTL."""
        install_projects(mock_api)

        first = (await aggregator.list_projects_with_derived_data()).unwrap()
        second = (await aggregator.list_projects_with_derived_data()).unwrap()

        assert isinstance(second, AggregatedSnapshot)
        assert second.project_ids() == first.project_ids()
        assert second.get("p1").premints == first.get("p1").premints
        assert len(mock_api.requests_for("GET", f"{API_URL}projects")) == 1

    async def test_refreshes_after_ttl(self, aggregator, mock_api, clock):
        """Should refresh exactly once after the TTL elapses."""
        install_projects(mock_api)

        await aggregator.list_projects_with_derived_data()
        clock.now += 3599
        await aggregator.list_projects_with_derived_data()
        clock.now += 1
        await aggregator.list_projects_with_derived_data()
        await aggregator.list_projects_with_derived_data()

        assert len(mock_api.requests_for("GET", f"{API_URL}projects")) == 2

    async def test_force_refresh(self, aggregator, mock_api):
        """Should bypass a fresh cache entry when forced."""
        install_projects(mock_api)

        await aggregator.list_projects_with_derived_data()
        await aggregator.list_projects_with_derived_data(force_refresh=True)

        assert len(mock_api.requests_for("GET", f"{API_URL}projects")) == 2

    async def test_zero_ttl_is_not_cached(self, client, cache, settings, mock_api):
        """Should refetch every time when the snapshot TTL is zero."""
        install_projects(mock_api)
        aggregator = ProjectAggregator(client, cache, settings.model_copy(update={"snapshot_ttl_seconds": 0}))

        await aggregator.list_projects_with_derived_data()
        await aggregator.list_projects_with_derived_data()

        assert not await cache.exists(snapshot_cache_key("0R8Tv"))
        assert len(mock_api.requests_for("GET", f"{API_URL}projects")) == 2

    async def test_stored_under_fingerprint(self, aggregator, cache, mock_api):
        """Should store the snapshot under the tenant's fingerprint."""
        install_projects(mock_api)

        await aggregator.refresh_snapshot()

        assert await cache.exists("mintology:projects:0R8Tv")

    async def test_tenants_do_not_share_snapshots(self, settings, mock_api, cache):
        """Should keep separate snapshots per tenant key."""
        install_projects(mock_api)
        tenant_a = MintologyClient(
            settings=settings,
            key_store=StaticTenantKeyStore({KEY_OPTION: "tenant-a"}),
            transport=mock_api.transport,
        )
        tenant_b = MintologyClient(
            settings=settings,
            key_store=StaticTenantKeyStore({KEY_OPTION: "tenant-b"}),
            transport=mock_api.transport,
        )

        await ProjectAggregator(tenant_a, cache).list_projects_with_derived_data()
        await ProjectAggregator(tenant_b, cache).list_projects_with_derived_data()
        await tenant_a.close()
        await tenant_b.close()

        assert await cache.exists(snapshot_cache_key("0ZNNn"))
        assert await cache.exists(snapshot_cache_key("0zR3i"))
        assert len(mock_api.requests_for("GET", f"{API_URL}projects")) == 2


class TestInMemoryCache:
    """Tests for the in-process cache backend."""

    async def test_expires_after_ttl(self, cache, clock):
        """Should drop entries once their TTL elapses."""
        await cache.set("k", "v", ttl=10)
        clock.now += 9
        assert await cache.get("k") == "v"
        clock.now += 1
        assert await cache.get("k") is None

    async def test_without_ttl(self, cache, clock):
        """Should keep entries stored without a TTL."""
        await cache.set("k", "v")
        clock.now += 10**6

        assert await cache.get("k") == "v"

    @pytest.mark.parametrize("ttl", [0, -5])
    async def test_non_positive_ttl_stores_nothing(self, cache, ttl):
        """Should not store, and should drop any previous value, for a TTL of zero or less."""
        await cache.set("k", "old")

        assert await cache.set("k", "new", ttl=ttl) is False
        assert await cache.get("k") is None

"""Tests for the named clients and endpoint helpers."""

import json

import httpx
import pytest
import respx

from saxon_scout.api import BlueAllianceAPI, CachedAPIClient, FirstEventsAPI, ScoutingAPI, build_clients
from saxon_scout.cache import CacheExpiry
from saxon_scout.config import Settings

TBA_URL = "https://tba.example.org/api/v3"
FIRST_URL = "https://frc.example.org/v3.0"
LOCAL_URL = "http://localhost:3000/api"


@pytest.fixture
def settings():
    return Settings(
        local_api_url=LOCAL_URL,
        tba_base_url=TBA_URL,
        tba_api_key="tba-key",
        first_base_url=FIRST_URL,
        first_username="saxons",
        first_password="hunter2",
        cache_store="memory",
    )


@pytest.fixture
async def clients(settings, cache):
    built = build_clients(settings, cache)
    yield built
    await built.aclose()


class TestBuildClients:
    def test_cache_policies(self, clients):
        assert clients.local.default_cache_policy.ttl == CacheExpiry.MEDIUM
        assert clients.tba.default_cache_policy.ttl == CacheExpiry.LONG
        assert clients.first.default_cache_policy.ttl == CacheExpiry.MEDIUM
        assert clients.local.cache is clients.tba.cache is clients.first.cache

    @respx.mock
    async def test_tba_sends_auth_key(self, clients):
        route = respx.get(f"{TBA_URL}/team/frc4414").mock(return_value=httpx.Response(200, json={}))

        await BlueAllianceAPI(clients.tba).get_team(4414)

        assert route.calls.last.request.headers["x-tba-auth-key"] == "tba-key"

    @respx.mock
    async def test_first_uses_basic_auth(self, clients):
        route = respx.get(f"{FIRST_URL}/2024/teams").mock(return_value=httpx.Response(200, json={}))

        await FirstEventsAPI(clients.first).get_team(2024, 4414)

        request = route.calls.last.request
        assert request.headers["authorization"].startswith("Basic ")
        assert request.url.params["teamNumber"] == "4414"

    @respx.mock
    async def test_missing_credentials_send_nothing(self, cache):
        settings = Settings(tba_base_url=TBA_URL, first_base_url=FIRST_URL, cache_store="memory")
        route_tba = respx.get(f"{TBA_URL}/event/2024casj").mock(return_value=httpx.Response(200, json={}))
        route_first = respx.get(f"{FIRST_URL}/2024/matches/CASJ").mock(return_value=httpx.Response(200, json={}))

        clients = build_clients(settings, cache)
        try:
            await BlueAllianceAPI(clients.tba).get_event("2024casj")
            await FirstEventsAPI(clients.first).get_matches(2024, "CASJ")
        finally:
            await clients.aclose()

        assert "x-tba-auth-key" not in route_tba.calls.last.request.headers
        assert "authorization" not in route_first.calls.last.request.headers


class TestBlueAllianceAPI:
    @pytest.fixture
    async def tba(self, cache):
        async with CachedAPIClient(TBA_URL, cache) as client:
            yield BlueAllianceAPI(client)

    @respx.mock
    async def test_team_events_with_and_without_year(self, tba):
        all_events = respx.get(f"{TBA_URL}/team/frc4414/events").mock(return_value=httpx.Response(200, json=[1]))
        by_year = respx.get(f"{TBA_URL}/team/frc4414/events/2024").mock(return_value=httpx.Response(200, json=[2]))

        assert await tba.get_team_events(4414) == [1]
        assert await tba.get_team_events(4414, 2024) == [2]
        assert all_events.called and by_year.called

    @respx.mock
    async def test_event_endpoints(self, tba):
        for suffix in ("", "/teams", "/matches", "/rankings", "/awards"):
            respx.get(f"{TBA_URL}/event/2024casj{suffix}").mock(return_value=httpx.Response(200, json={"s": suffix}))
        respx.get(f"{TBA_URL}/team/frc4414/event/2024casj/matches").mock(
            return_value=httpx.Response(200, json=["qm1"])
        )

        assert await tba.get_event("2024casj") == {"s": ""}
        assert await tba.get_event_teams("2024casj") == {"s": "/teams"}
        assert await tba.get_event_matches("2024casj") == {"s": "/matches"}
        assert await tba.get_event_rankings("2024casj") == {"s": "/rankings"}
        assert await tba.get_event_awards("2024casj") == {"s": "/awards"}
        assert await tba.get_team_matches(4414, "2024casj") == ["qm1"]

    @respx.mock
    async def test_live_event_data_uses_short_ttl(self, tba, clock):
        route = respx.get(f"{TBA_URL}/event/2024casj/matches").mock(return_value=httpx.Response(200, json=[]))

        await tba.get_event_matches("2024casj")
        clock.advance(CacheExpiry.SHORT + 1)
        await tba.get_event_matches("2024casj")

        assert route.call_count == 2


class TestScoutingAPI:
    @pytest.fixture
    async def scouting(self, cache):
        async with CachedAPIClient(LOCAL_URL, cache) as client:
            yield ScoutingAPI(client)

    @respx.mock
    async def test_save_scouted_match(self, scouting):
        route = respx.post(f"{LOCAL_URL}/scouting/matches").mock(return_value=httpx.Response(201, json={"id": 1}))

        result = await scouting.save_scouted_match({"team": 4414, "match": "qm1"})

        assert result == {"id": 1}
        assert json.loads(route.calls.last.request.content) == {"team": 4414, "match": "qm1"}

    @respx.mock
    async def test_save_scouted_pit(self, scouting):
        route = respx.post(f"{LOCAL_URL}/scouting/pit").mock(return_value=httpx.Response(201, json={"id": 2}))

        assert await scouting.save_scouted_pit({"team": 4414}) == {"id": 2}
        assert route.call_count == 1

    @respx.mock
    async def test_scouted_matches_filter_by_team(self, scouting):
        route = respx.get(f"{LOCAL_URL}/scouting/matches").mock(return_value=httpx.Response(200, json=[]))

        await scouting.get_scouted_matches(4414)
        await scouting.get_scouted_matches()

        assert route.calls[0].request.url.params["team"] == "4414"
        assert "team" not in route.calls[1].request.url.params

    @respx.mock
    async def test_scouted_pits_are_cached(self, scouting):
        route = respx.get(f"{LOCAL_URL}/scouting/pit").mock(return_value=httpx.Response(200, json=[]))

        await scouting.get_scouted_pits(4414)
        await scouting.get_scouted_pits(4414)

        assert route.call_count == 1

    @respx.mock
    async def test_team_stats(self, scouting):
        respx.get(f"{LOCAL_URL}/scouting/stats/4414").mock(return_value=httpx.Response(200, json={"avg": 42}))
        respx.get(f"{LOCAL_URL}/scouting/stats").mock(return_value=httpx.Response(200, json={"4414": {"avg": 42}}))

        assert await scouting.get_team_stats(4414) == {"avg": 42}
        assert await scouting.get_all_team_stats() == {"4414": {"avg": 42}}

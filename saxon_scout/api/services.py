"""Named API clients and typed endpoint helpers.

The local scouting API, The Blue Alliance and FIRST Events each get their own
``CachedAPIClient`` over a shared cache context. Upstream competition data
changes slowly and is cached for a day; local scouting data for half an hour.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from saxon_scout.api.client import CachedAPIClient
from saxon_scout.cache.base import CacheExpiry
from saxon_scout.cache.context import CacheContext
from saxon_scout.config import CachePolicy, Settings


@dataclass
class ScoutClients:
    local: CachedAPIClient
    tba: CachedAPIClient
    first: CachedAPIClient

    async def aclose(self) -> None:
        for client in (self.local, self.tba, self.first):
            await client.aclose()


def build_clients(settings: Settings, cache: CacheContext) -> ScoutClients:
    tba_headers = {"X-TBA-Auth-Key": settings.tba_api_key} if settings.tba_api_key else None
    first_auth = None
    if settings.first_username and settings.first_password:
        first_auth = (settings.first_username, settings.first_password)

    return ScoutClients(
        local=CachedAPIClient(
            settings.local_api_url,
            cache,
            cache_policy=CachePolicy(ttl=CacheExpiry.MEDIUM),
            timeout=settings.request_timeout,
        ),
        tba=CachedAPIClient(
            settings.tba_base_url,
            cache,
            cache_policy=CachePolicy(ttl=CacheExpiry.LONG),
            headers=tba_headers,
            timeout=settings.request_timeout,
        ),
        first=CachedAPIClient(
            settings.first_base_url,
            cache,
            cache_policy=CachePolicy(ttl=CacheExpiry.MEDIUM),
            auth=first_auth,
            timeout=settings.request_timeout,
        ),
    )


class BlueAllianceAPI:
    """Read-only helpers for The Blue Alliance v3 API."""

    def __init__(self, client: CachedAPIClient) -> None:
        self.client = client

    async def get_team(self, team_number: int) -> dict[str, Any]:
        return await self.client.get(f"/team/frc{team_number}")

    async def get_team_events(self, team_number: int, year: int | None = None) -> list[dict[str, Any]]:
        suffix = f"/{year}" if year else ""
        return await self.client.get(f"/team/frc{team_number}/events{suffix}")

    async def get_team_matches(self, team_number: int, event_key: str) -> list[dict[str, Any]]:
        return await self.client.get(f"/team/frc{team_number}/event/{event_key}/matches")

    async def get_event(self, event_key: str) -> dict[str, Any]:
        return await self.client.get(f"/event/{event_key}")

    async def get_event_teams(self, event_key: str) -> list[dict[str, Any]]:
        return await self.client.get(f"/event/{event_key}/teams")

    async def get_event_matches(self, event_key: str) -> list[dict[str, Any]]:
        # Match results change during an event.
        return await self.client.get(f"/event/{event_key}/matches", cache={"ttl": CacheExpiry.SHORT})

    async def get_event_rankings(self, event_key: str) -> dict[str, Any]:
        return await self.client.get(f"/event/{event_key}/rankings", cache={"ttl": CacheExpiry.SHORT})

    async def get_event_awards(self, event_key: str) -> list[dict[str, Any]]:
        return await self.client.get(f"/event/{event_key}/awards")


class FirstEventsAPI:
    """Read-only helpers for the FIRST Events API."""

    def __init__(self, client: CachedAPIClient) -> None:
        self.client = client

    async def get_event(self, season: int, event_code: str) -> dict[str, Any]:
        return await self.client.get(f"/{season}/events", {"eventCode": event_code})

    async def get_team(self, season: int, team_number: int) -> dict[str, Any]:
        return await self.client.get(f"/{season}/teams", {"teamNumber": team_number})

    async def get_matches(self, season: int, event_code: str) -> dict[str, Any]:
        return await self.client.get(f"/{season}/matches/{event_code}")


class ScoutingAPI:
    """Helpers for the team's own scouting backend.

    Saving an observation invalidates nothing automatically; list reads use a
    short TTL so new observations show up quickly.
    """

    def __init__(self, client: CachedAPIClient) -> None:
        self.client = client

    @staticmethod
    def _team_params(team_number: int | None) -> dict[str, Any]:
        return {"team": team_number} if team_number else {}

    async def save_scouted_match(self, match: dict[str, Any]) -> dict[str, Any]:
        return await self.client.post("/scouting/matches", match)

    async def get_scouted_matches(self, team_number: int | None = None) -> dict[str, Any]:
        return await self.client.get(
            "/scouting/matches",
            self._team_params(team_number),
            cache={"ttl": CacheExpiry.SHORT},
        )

    async def save_scouted_pit(self, pit: dict[str, Any]) -> dict[str, Any]:
        return await self.client.post("/scouting/pit", pit)

    async def get_scouted_pits(self, team_number: int | None = None) -> dict[str, Any]:
        return await self.client.get(
            "/scouting/pit",
            self._team_params(team_number),
            cache={"ttl": CacheExpiry.SHORT},
        )

    async def get_team_stats(self, team_number: int) -> dict[str, Any]:
        return await self.client.get(f"/scouting/stats/{team_number}")

    async def get_all_team_stats(self) -> dict[str, Any]:
        return await self.client.get("/scouting/stats")

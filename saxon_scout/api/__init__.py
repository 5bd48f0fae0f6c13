"""REST clients for Saxon Scout."""

from saxon_scout.api.client import DEFAULT_TIMEOUT, CachedAPIClient
from saxon_scout.api.services import (
    BlueAllianceAPI,
    FirstEventsAPI,
    ScoutClients,
    ScoutingAPI,
    build_clients,
)

__all__ = [
    "BlueAllianceAPI",
    "CachedAPIClient",
    "DEFAULT_TIMEOUT",
    "FirstEventsAPI",
    "ScoutClients",
    "ScoutingAPI",
    "build_clients",
]

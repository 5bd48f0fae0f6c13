"""Saxon Scout - cached data access for the scouting client."""

__version__ = "0.1.0"

from saxon_scout.api import (
    BlueAllianceAPI,
    CachedAPIClient,
    FirstEventsAPI,
    ScoutClients,
    ScoutingAPI,
    build_clients,
)
from saxon_scout.cache import (
    CacheContext,
    CacheEntry,
    CacheExpiry,
    FileStore,
    InMemoryStore,
    MemoryCache,
    PersistentCache,
    RedisStore,
)
from saxon_scout.config import CachePolicy, Settings, configure_logging, get_settings, load_settings
from saxon_scout.exceptions import (
    APIError,
    CacheFault,
    DeserializationError,
    SaxonScoutError,
    SerializationError,
    StorageError,
    StorageFull,
)
from saxon_scout.query import CachedQuery, CachedQueryMap, QueryMapState, QueryState, QueryStatus

__all__ = [
    # Version
    "__version__",
    # Cache
    "CacheContext",
    "CacheEntry",
    "CacheExpiry",
    "CachePolicy",
    "FileStore",
    "InMemoryStore",
    "MemoryCache",
    "PersistentCache",
    "RedisStore",
    # Clients
    "BlueAllianceAPI",
    "CachedAPIClient",
    "FirstEventsAPI",
    "ScoutClients",
    "ScoutingAPI",
    "build_clients",
    # Queries
    "CachedQuery",
    "CachedQueryMap",
    "QueryMapState",
    "QueryState",
    "QueryStatus",
    # Config
    "Settings",
    "configure_logging",
    "get_settings",
    "load_settings",
    # Exceptions
    "APIError",
    "CacheFault",
    "DeserializationError",
    "SaxonScoutError",
    "SerializationError",
    "StorageError",
    "StorageFull",
]

"""
Sincronización de la taxonomía remota con el árbol de tags.

Descarga la taxonomía multi-locale de la API, la materializa como tags bajo
el namespace "exl:" y publica las páginas de la taxonomía.
"""

from .errors import (
    ConfigError,
    FetchError,
    InvalidIdentifierError,
    InvalidItemError,
    PersistenceError,
    PublishError,
    TagSyncError,
)
from .identifiers import build_tag_id, decode_tag_id, derive_tag_id
from .models import (
    ApiEndpointConfig,
    ItemOutcome,
    LocaleConfig,
    OutcomeStatus,
    SyncConfig,
    SyncReport,
    TagNode,
    TaxonomyItem,
)
from .orchestrator import SyncState, TagSyncOrchestrator
from .store import InMemoryTagStore, TagStore, store_session

__all__ = [
    "ApiEndpointConfig",
    "ConfigError",
    "FetchError",
    "InMemoryTagStore",
    "InvalidIdentifierError",
    "InvalidItemError",
    "ItemOutcome",
    "LocaleConfig",
    "OutcomeStatus",
    "PersistenceError",
    "PublishError",
    "SyncConfig",
    "SyncReport",
    "SyncState",
    "TagNode",
    "TagStore",
    "TagSyncError",
    "TagSyncOrchestrator",
    "TaxonomyItem",
    "build_tag_id",
    "decode_tag_id",
    "derive_tag_id",
    "store_session",
]

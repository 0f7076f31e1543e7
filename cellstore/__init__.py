"""cellstore: observable values persisted to files and key-value stores.

Public API re-exports for convenient imports:
    from cellstore import PersistentCell, FileBackend, CellRegistry, ...
"""

# Cells
from cellstore.cell import Cell, PersistentCell
from cellstore.computed import ComputedCell, computed
from cellstore.watch import CellWatch, watch
from cellstore.registry import CellRegistry

# Backends & key-value stores
from cellstore.backends import (
    StorageBackend,
    KeyValueStore,
    FileBackend,
    KeyValueBackend,
    CompositeBackend,
    LocalStorage,
    MemoryStore,
    CacheStore,
    backend_for,
)

# Codecs
from cellstore.codecs import Codec, JSON, YAML, model_list_codec

# Errors
from cellstore.errors import (
    CellError,
    HydrationError,
    WriteError,
    CellImportError,
    ValidationError,
    DuplicateCardError,
    ErrorReporter,
    LoggingReporter,
    CollectingReporter,
)

# Workspace & logging
from cellstore.workspace import (
    support_root,
    store_path,
    local_storage_path,
    settings_path,
    backups_path,
    logs_path,
    Settings,
    load_settings,
    save_settings,
)
from cellstore.logs import configure_logging

# Stores
from cellstore.stores import Stores, open_stores
from cellstore.collections import CollectionStore, open_collections
from cellstore.cookies import add_parsed_cookie, open_cookies
from cellstore.backup import backup_all

# Models
from cellstore.models import (
    Card,
    Deck,
    ReviewRecord,
    Environment,
    Variable,
    HistoryEntry,
    Collection,
    Request,
    Header,
    ParsedCookie,
    CookieOptions,
)

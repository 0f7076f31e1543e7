"""Build the registry holding every bundled store."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from cellstore.backends import LocalStorage
from cellstore.cell import PersistentCell
from cellstore.collections import CollectionStore, initialize_default_collection, open_collections
from cellstore.cookies import Cookies, open_cookies
from cellstore.decks import open_decks
from cellstore.environments import EnvironmentStore, initialize_default_environment, open_environments
from cellstore.errors import ErrorReporter
from cellstore.history import HistoryStore, open_history
from cellstore.models import Deck
from cellstore.registry import CellRegistry
from cellstore.workspace import Settings, load_settings, local_storage_path, support_root


@dataclass
class Stores:
    registry: CellRegistry
    collections: CollectionStore
    environments: EnvironmentStore
    history: HistoryStore
    cookies: PersistentCell[Cookies]
    decks: PersistentCell[list[Deck]]

    async def initialize(self) -> None:
        """Wait for hydration and create first-run defaults."""
        await self.registry.ready()
        await initialize_default_collection(self.collections)
        await initialize_default_environment(self.environments)


def open_stores(
    root: Path | None = None,
    settings: Settings | None = None,
    reporter: ErrorReporter | None = None,
) -> Stores:
    """Construct every store against one support directory.

    Must run inside the event loop; hydration starts immediately. All stores
    share one LocalStorage so their key-value writes go through one lock.
    """
    if root is None:
        root = support_root()
    if settings is None:
        settings = load_settings(root)
    registry = CellRegistry(reporter=reporter, export_dir=root)
    local = LocalStorage(local_storage_path(root))
    return Stores(
        registry=registry,
        collections=open_collections(registry, root, store=local),
        environments=open_environments(registry, root, store=local),
        history=open_history(registry, settings, root, store=local),
        cookies=open_cookies(registry, root),
        decks=open_decks(registry, settings, root),
    )

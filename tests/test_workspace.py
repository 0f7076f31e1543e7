"""Tests for cellstore/workspace.py and cellstore/logs.py"""

import logging

from cellstore.logs import configure_logging
from cellstore.workspace import (
    Settings,
    load_settings,
    local_storage_path,
    save_settings,
    settings_path,
    store_path,
    support_root,
)


def test_support_root_from_env(root):
    assert support_root() == root
    assert store_path("decks.json") == root / "decks.json"
    assert local_storage_path() == root / "local-storage.json"


def test_missing_settings_use_defaults(root):
    settings = load_settings(root)
    assert settings == Settings()
    assert settings.debounce == 0.5


def test_settings_round_trip(root):
    save_settings(Settings(debounce_ms=0, history_limit=20, log_level="debug", log_to_file=True), root)
    assert settings_path(root).exists()
    settings = load_settings(root)
    assert settings.debounce is None
    assert settings.history_limit == 20
    assert settings.log_level == "DEBUG"
    assert settings.log_to_file is True


def test_partial_settings_file(root):
    settings_path(root).write_text("history_limit: 5\n", encoding="utf-8")
    settings = load_settings(root)
    assert settings.history_limit == 5
    assert settings.debounce_ms == 500


def test_configure_logging_is_idempotent(root):
    logger = configure_logging(Settings(log_level="WARNING"), root)
    configure_logging(Settings(log_level="WARNING"), root)
    ours = [h for h in logger.handlers if getattr(h, "_cellstore", False)]
    assert len(ours) == 1
    assert logger.level == logging.WARNING
    configure_logging(Settings(), root, stream=False)


def test_configure_logging_to_file(root):
    logger = configure_logging(Settings(log_to_file=True), root, stream=False)
    logger.info("hello from test")
    for handler in logger.handlers:
        handler.flush()
    assert "hello from test" in (root / "logs" / "cellstore.log").read_text(encoding="utf-8")
    configure_logging(Settings(), root, stream=False)

"""Support directory, path helpers, and settings for cellstore."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cellstore.fileio import read_yaml, write_yaml_atomic


def support_root() -> Path:
    """Get the support directory that holds every persisted store."""
    return Path(
        os.environ.get("CELLSTORE_ROOT", str(Path.home() / ".cellstore"))
    ).expanduser().resolve()


# ── Path helpers ──────────────────────────────────────────────

def store_path(file_name: str, root: Path | None = None) -> Path:
    if root is None:
        root = support_root()
    return root / file_name


def local_storage_path(root: Path | None = None) -> Path:
    if root is None:
        root = support_root()
    return root / "local-storage.json"


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = support_root()
    return root / "settings.yaml"


def backups_path(root: Path | None = None) -> Path:
    if root is None:
        root = support_root()
    return root / "backups"


def logs_path(root: Path | None = None) -> Path:
    if root is None:
        root = support_root()
    return root / "logs"


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    debounce_ms: int = 500
    history_limit: int = 100
    log_level: str = "INFO"
    log_to_file: bool = False

    @property
    def debounce(self) -> float | None:
        """Debounce interval in seconds, or None for immediate writes."""
        if self.debounce_ms <= 0:
            return None
        return self.debounce_ms / 1000

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            debounce_ms=int(d.get("debounce_ms", 500)),
            history_limit=int(d.get("history_limit", 100)),
            log_level=str(d.get("log_level", "INFO")).upper(),
            log_to_file=bool(d.get("log_to_file", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "debounce_ms": self.debounce_ms,
            "history_limit": self.history_limit,
            "log_level": self.log_level,
            "log_to_file": self.log_to_file,
        }


def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml, falling back to defaults for anything missing."""
    return Settings.from_dict(read_yaml(settings_path(root)))


def save_settings(settings: Settings, root: Path | None = None) -> None:
    write_yaml_atomic(settings_path(root), settings.to_dict())

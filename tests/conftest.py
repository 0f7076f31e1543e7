"""Shared test fixtures for cellstore tests."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest


class RecordingBackend:
    """In-memory backend that records every write and can be made to fail.

    ``read_gate`` / ``write_gate`` (asyncio.Event) hold a read or write until
    the test sets them.
    """

    def __init__(
        self,
        stored: str | None = None,
        fail_read: bool = False,
        fail_write: bool = False,
        read_gate: asyncio.Event | None = None,
        write_gate: asyncio.Event | None = None,
        name: str = "recording",
    ):
        self.stored = stored
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.read_gate = read_gate
        self.write_gate = write_gate
        self.name = name
        self.reads = 0
        self.writes: list[str] = []

    async def read(self) -> str | None:
        self.reads += 1
        if self.read_gate is not None:
            await self.read_gate.wait()
        if self.fail_read:
            raise OSError("backend unavailable")
        return self.stored

    async def write(self, value: str) -> None:
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_write:
            raise OSError("disk full")
        self.writes.append(value)
        self.stored = value


@pytest.fixture
def recording():
    """Factory for RecordingBackend instances."""
    return RecordingBackend


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """Create a temporary support directory and point CELLSTORE_ROOT at it."""
    support = tmp_path / "support"
    support.mkdir()
    os.environ["CELLSTORE_ROOT"] = str(support)
    yield support
    # Cleanup
    if "CELLSTORE_ROOT" in os.environ:
        del os.environ["CELLSTORE_ROOT"]

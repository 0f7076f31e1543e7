"""Error types and the error-reporting sink used by cells."""

from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class CellError(Exception):
    """Base class for cellstore errors."""


class HydrationError(CellError):
    """Persisted state could not be loaded; the cell kept its initial value."""

    def __init__(self, cell_name: str, cause: BaseException):
        super().__init__(f"Failed to hydrate {cell_name}: {cause}")
        self.cell_name = cell_name
        self.cause = cause


class WriteError(CellError):
    """One or more backends failed to persist a value."""

    def __init__(self, failures: list[tuple[str, BaseException]]):
        details = ", ".join(f"{name} ({error})" for name, error in failures)
        super().__init__(f"Write failed for {details}")
        self.failures = failures


class CellImportError(CellError):
    """An explicit import could not read or decode its file."""


class ValidationError(CellError, ValueError):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class DuplicateCardError(ValidationError):
    pass


class ErrorReporter(Protocol):
    def report(self, message: str, context: dict[str, Any]) -> None: ...


class LoggingReporter:
    """Default sink: log the report at ERROR level."""

    def report(self, message: str, context: dict[str, Any]) -> None:
        logger.error("%s: %s", message, context)


class CollectingReporter:
    """Keep reports in memory so a UI layer can surface them later."""

    def __init__(self) -> None:
        self.reports: list[tuple[str, dict[str, Any]]] = []

    def report(self, message: str, context: dict[str, Any]) -> None:
        logger.error("%s: %s", message, context)
        self.reports.append((message, context))

    def drain(self) -> list[tuple[str, dict[str, Any]]]:
        reports, self.reports = self.reports, []
        return reports

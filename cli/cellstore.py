#!/usr/bin/env python3
"""cellstore TUI: browse the raw persisted value of every store."""

from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import DataTable, Footer, Header, Static

from cellstore import (
    CollectingReporter,
    Stores,
    backup_all,
    configure_logging,
    load_settings,
    open_stores,
    support_root,
)
from cellstore.fileio import write_text_atomic
from cellstore.tree import PAGE_SIZE, Row, get_node, list_children_paged, preview, safe_stringify

UP_KEY = ".."


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#breadcrumb {
    dock: top;
    height: 1;
    padding: 0 2;
    color: $text-muted;
}

#main-layout {
    height: 1fr;
}

#nodes {
    width: 1fr;
    min-width: 30;
    border-right: tall $primary-background-darken-2;
}

#preview-pane {
    width: 2fr;
    padding: 0 1;
}

#preview {
    height: auto;
}
"""


class StorageBrowser(App):
    """Drill into the stores' persisted JSON one level at a time."""

    CSS = CSS
    TITLE = "cellstore"

    BINDINGS = [
        Binding("backspace", "up", "Up"),
        Binding("n", "next_page", "Next page"),
        Binding("p", "prev_page", "Prev page"),
        Binding("w", "save_node", "Save node"),
        Binding("b", "backup", "Backup"),
        Binding("q", "quit_app", "Quit"),
    ]

    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root = root
        self.reporter = CollectingReporter()
        self.stores: Stores | None = None
        self.path: list[str | int] = []
        self.page = 0
        self.rows: dict[str, Row] = {}

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("/", id="breadcrumb")
        with Horizontal(id="main-layout"):
            yield DataTable(id="nodes", cursor_type="row")
            with Vertical(id="preview-pane"):
                yield Static("", id="preview")
        yield Footer()

    async def on_mount(self) -> None:
        table = self.query_one("#nodes", DataTable)
        table.add_columns("Key", "Type", "Info")
        self.stores = open_stores(self.root, reporter=self.reporter)
        await self.stores.registry.ready()
        for message, context in self.reporter.drain():
            self.notify(str(context.get("cell", "")), title=message, severity="error")
        self._render_rows()

    # ── Data ──────────────────────────────────────────────────

    def _tree(self) -> dict[str, Any]:
        if self.stores is None:
            return {}
        return {cell.name: json.loads(cell.serialize(cell.get())) for cell in self.stores.registry}

    def _current_node(self) -> Any:
        return get_node(self._tree(), self.path)

    def _render_rows(self) -> None:
        table = self.query_one("#nodes", DataTable)
        table.clear()
        self.rows = {}
        node = self._current_node()
        rows, total = list_children_paged(node, self.page, PAGE_SIZE)
        pages = max(1, -(-total // PAGE_SIZE))

        if self.path:
            table.add_row(UP_KEY, "", "Back", key=UP_KEY)
        for row in rows:
            self.rows[row.id] = row
            table.add_row(row.label, row.type, row.meta or "", key=row.id)

        crumb = "/" + "/".join(str(p) for p in self.path)
        self.query_one("#breadcrumb", Static).update(f"{crumb}  page {self.page + 1}/{pages}  ({total} items)")
        self._show_preview(rows[0] if rows else None)

    def _show_preview(self, row: Row | None) -> None:
        text = "" if row is None else preview(get_node(self._current_node(), [row.accessor]))
        self.query_one("#preview", Static).update(text)

    # ── Events ────────────────────────────────────────────────

    @on(DataTable.RowHighlighted, "#nodes")
    def _on_highlight(self, event: DataTable.RowHighlighted) -> None:
        key = event.row_key.value
        if key in self.rows:
            self._show_preview(self.rows[key])

    @on(DataTable.RowSelected, "#nodes")
    def _on_select(self, event: DataTable.RowSelected) -> None:
        key = event.row_key.value
        if key == UP_KEY:
            self.action_up()
            return
        row = self.rows.get(key)
        if row is not None and row.can_drill:
            self.path.append(row.accessor)
            self.page = 0
            self._render_rows()

    # ── Actions ───────────────────────────────────────────────

    def action_up(self) -> None:
        if self.path:
            self.path.pop()
            self.page = 0
            self._render_rows()

    def action_next_page(self) -> None:
        _, total = list_children_paged(self._current_node(), 0, PAGE_SIZE)
        if (self.page + 1) * PAGE_SIZE < total:
            self.page += 1
            self._render_rows()

    def action_prev_page(self) -> None:
        if self.page > 0:
            self.page -= 1
            self._render_rows()

    def action_save_node(self) -> None:
        """Write the whole current node (untruncated) next to the stores."""
        path = self.root / f"node-{datetime.now().strftime('%Y%m%d-%H%M%S')}.json"
        try:
            write_text_atomic(path, safe_stringify(self._current_node()))
        except OSError as e:
            self.notify(str(e), title="Save failed", severity="error")
            return
        self.notify(str(path), title="Saved node")

    async def action_backup(self) -> None:
        if self.stores is None:
            return
        try:
            directory = await backup_all(self.stores.registry, self.root)
        except Exception as e:
            self.notify(str(e), title="Backup failed", severity="error")
            return
        self.notify(str(directory), title="Backup complete")

    def action_quit_app(self) -> None:
        # Read-only browser: nothing was set, so there is nothing to flush.
        self.exit()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = support_root()
    if not root.exists():
        print(f"Support directory not found: {root}")
        print("Set CELLSTORE_ROOT or create the directory first.")
        sys.exit(1)

    configure_logging(load_settings(root), root, stream=False)
    app = StorageBrowser(root)
    app.run()


if __name__ == "__main__":
    main()

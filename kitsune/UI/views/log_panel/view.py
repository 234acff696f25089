"""
Log Panel View Module - Terminal presentation of one PanelController

Handles:
- Panel title, filter input, record table and status line
- Batching controller events (raised on tail threads) onto the UI thread
- Forwarding row selection to the controller for time sync
"""
import logging
import threading
from typing import List, Optional, Tuple

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import DataTable, Input, Label, Static
from textual.timer import Timer
from textual import on

from kitsune.core.log_parser import LogRecord
from kitsune.core.panel import PanelController
from .log_table import LogRecordTable


class LogPanelView(Vertical):
    """One log panel: title, filter, records and status"""

    DEFAULT_CSS = """
    LogPanelView {
        width: 1fr;
        border: round $primary;
    }
    LogPanelView .panel-title {
        text-style: bold;
    }
    LogPanelView LogRecordTable {
        height: 1fr;
    }
    LogPanelView .panel-status {
        color: $text-muted;
    }
    """

    def __init__(self, panel: PanelController, **kwargs):
        super().__init__(**kwargs)
        self.panel = panel
        self.logger = logging.getLogger(__name__)
        self.update_timer: Optional[Timer] = None
        self._pending: List[Tuple] = []
        self._pending_lock = threading.Lock()
        self._last_sequence = 0

    def compose(self) -> ComposeResult:
        yield Label(self.panel.title, classes="panel-title")
        yield Input(value=self.panel.filter_text, placeholder="Filter...", classes="panel-filter")
        yield LogRecordTable(classes="panel-table")
        yield Static(self.panel.status_text, classes="panel-status")

    @property
    def table(self) -> LogRecordTable:
        return self.query_one(LogRecordTable)

    def on_mount(self) -> None:
        self.panel.records_appended.subscribe(self._on_records_appended)
        self.panel.scroll_to_end_requested.subscribe(self._on_scroll_to_end)
        self.panel.scroll_to_record_requested.subscribe(self._on_scroll_to_record)
        self.panel.status_changed.subscribe(self._on_status_changed)
        self.panel.filter_changed.subscribe(self._on_filter_changed)
        self.panel.error_occurred.subscribe(self._on_error)

        self.call_after_refresh(self.rebuild)
        self.update_timer = self.set_interval(0.2, self._process_pending_updates)

    def on_unmount(self) -> None:
        self.panel.records_appended.unsubscribe(self._on_records_appended)
        self.panel.scroll_to_end_requested.unsubscribe(self._on_scroll_to_end)
        self.panel.scroll_to_record_requested.unsubscribe(self._on_scroll_to_record)
        self.panel.status_changed.unsubscribe(self._on_status_changed)
        self.panel.filter_changed.unsubscribe(self._on_filter_changed)
        self.panel.error_occurred.unsubscribe(self._on_error)

        if self.update_timer:
            self.update_timer.stop()
            self.update_timer = None

    # --- controller callbacks (any thread) -------------------------------

    def _queue(self, *update) -> None:
        with self._pending_lock:
            self._pending.append(update)

    def _on_records_appended(self, records: List[LogRecord]) -> None:
        self._queue("append", records)

    def _on_scroll_to_end(self) -> None:
        self._queue("end")

    def _on_scroll_to_record(self, record: LogRecord) -> None:
        self._queue("record", record)

    def _on_status_changed(self, text: str) -> None:
        self._queue("status", text)

    def _on_filter_changed(self, text: str) -> None:
        self._queue("filter", text)

    def _on_error(self, message: str) -> None:
        self._queue("error", message)

    # --- UI thread -------------------------------------------------------

    def rebuild(self) -> None:
        """Redraw the table from the controller's filtered view"""
        records = self.panel.filtered_records()
        self.table.show_records(records)
        self._last_sequence = self.panel.total_lines
        if self.panel.is_following:
            self.table.jump_to_bottom()

    def _process_pending_updates(self) -> None:
        with self._pending_lock:
            pending, self._pending = self._pending, []

        if not pending:
            return

        table = self.table
        for update in pending:
            kind = update[0]
            if kind == "append":
                records = update[1]
                if records[0].sequence <= self._last_sequence:
                    # Numbering restarted: the panel was cleared or reloaded
                    self.rebuild()
                    continue
                table.add_records(r for r in records if self.panel.buffer.matches(r))
                table.remove_before(self.panel.buffer.first_sequence)
                self._last_sequence = records[-1].sequence
            elif kind == "end":
                table.jump_to_bottom()
            elif kind == "record":
                table.jump_to_record(update[1])
            elif kind == "status":
                self.query_one(".panel-status", Static).update(update[1])
                self.query_one(".panel-title", Label).update(self.panel.title)
            elif kind == "filter":
                filter_input = self.query_one(".panel-filter", Input)
                if filter_input.value != update[1]:
                    filter_input.value = update[1]
                self.rebuild()
            elif kind == "error":
                self.notify(update[1], severity="error")

    @on(Input.Changed, ".panel-filter")
    def handle_filter_changed(self, event: Input.Changed) -> None:
        if event.value != self.panel.filter_text:
            self.panel.set_filter(event.value)

    @on(DataTable.RowSelected)
    def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        record = self.table.record_map.get(event.row_key.value)
        if record is not None:
            self.panel.select_record(record)

    def on_descendant_focus(self, event) -> None:
        workspace = getattr(self.app, "workspace", None)
        if workspace is not None:
            workspace.active_panel = self.panel

    def clear(self) -> None:
        self.panel.clear()
        self.rebuild()

"""
Kitsune Main Application - side-by-side live log panels using Textual
"""
import logging
from pathlib import Path
from typing import List, Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Button, Footer, Header, Input
from textual import on

from kitsune.core.workspace import Workspace, FileAlreadyOpenError
from kitsune.sysmon.tail_source import TailOpenError
from kitsune.UI.views.log_panel import LogPanelView


class KitsuneApp(App):
    """Multi-file real-time log viewer - Terminal UI Application"""

    TITLE = "Kitsune Log Viewer"

    CSS = """
    #open-bar {
        height: auto;
    }
    #open-file-input {
        width: 1fr;
    }
    #panels {
        height: 1fr;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("s", "toggle_sync", "Time Sync"),
        ("p", "toggle_pause", "Pause"),
        ("f", "toggle_follow", "Follow"),
        ("c", "clear_panel", "Clear"),
        ("y", "copy_panel", "Copy"),
        ("a", "filter_all", "Filter All"),
        ("w", "close_panel", "Close"),
    ]

    def __init__(self, workspace: Optional[Workspace] = None, files: Optional[List[str]] = None,
                 restore_session: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.workspace = workspace or Workspace()
        self.files = list(files or [])
        self.restore_session = restore_session
        self.logger = logging.getLogger(__name__)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="open-bar"):
            yield Input(placeholder="Path of a log file to open...", id="open-file-input")
            yield Button("Open", id="open-file-btn", variant="primary")
        yield Horizontal(id="panels")
        yield Footer()

    def on_mount(self) -> None:
        self._update_subtitle()

        if self.restore_session and not self.files:
            for panel in self.workspace.restore_last_session():
                self._mount_panel(panel)

        for path in self.files:
            self.open_file(path)

    def _update_subtitle(self) -> None:
        self.sub_title = f"Time sync: {'on' if self.workspace.is_time_sync_enabled else 'off'}"

    def _mount_panel(self, panel) -> None:
        self.query_one("#panels", Horizontal).mount(LogPanelView(panel, id=f"panel-{panel.panel_id}"))

    def open_file(self, path: str) -> None:
        try:
            panel = self.workspace.open_file(Path(path))
        except FileAlreadyOpenError as e:
            self.notify(str(e), severity="warning")
            return
        except TailOpenError as e:
            self.notify(f"Failed to load file: {e}", severity="error")
            return

        self._mount_panel(panel)

    @on(Button.Pressed, "#open-file-btn")
    def handle_open_button(self) -> None:
        self.handle_open_file()

    @on(Input.Submitted, "#open-file-input")
    def handle_open_file(self) -> None:
        path_input = self.query_one("#open-file-input", Input)
        path = path_input.value.strip()
        if path:
            self.open_file(path)
            path_input.value = ""

    def _active_view(self) -> Optional[LogPanelView]:
        panel = self.workspace.active_panel
        if panel is None:
            return None
        for view in self.query(LogPanelView):
            if view.panel is panel:
                return view
        return None

    def action_toggle_sync(self) -> None:
        enabled = self.workspace.toggle_time_sync()
        self._update_subtitle()
        self.notify(f"Time sync {'enabled' if enabled else 'disabled'}")

    def action_toggle_pause(self) -> None:
        if self.workspace.active_panel:
            self.workspace.active_panel.toggle_pause()

    def action_toggle_follow(self) -> None:
        panel = self.workspace.active_panel
        if panel:
            panel.toggle_follow()
            self.notify(f"Follow {'on' if panel.is_following else 'off'}")

    def action_clear_panel(self) -> None:
        view = self._active_view()
        if view:
            view.clear()

    def action_copy_panel(self) -> None:
        view = self._active_view()
        if view is None:
            return
        selected = view.table.get_selected_record()
        text = view.panel.copy_records([selected]) if selected else view.panel.copy_all()
        if text:
            self.copy_to_clipboard(text)
            self.notify("Copied to clipboard")

    def action_filter_all(self) -> None:
        if self.workspace.active_panel:
            self.workspace.active_panel.request_filter_for_all()

    def action_close_panel(self) -> None:
        view = self._active_view()
        if view is None:
            return
        panel = view.panel
        view.remove()
        self.workspace.close_panel(panel)


def run_app(files: Optional[List[str]] = None, workspace: Optional[Workspace] = None,
            restore_session: bool = True) -> None:
    """Entry point to run the Kitsune application"""
    workspace = workspace or Workspace()
    app = KitsuneApp(workspace=workspace, files=files, restore_session=restore_session)
    try:
        app.run()
    finally:
        workspace.shutdown()


if __name__ == "__main__":
    run_app()

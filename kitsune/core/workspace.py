"""
Workspace Module - The set of open log panels

Handles:
- Opening files as panels (one panel per file)
- Closing panels and resetting sync once nothing is open
- Global time sync toggle and "apply filter to all panels"
- Automatic and named sessions
"""
import logging
import os
from pathlib import Path
from typing import Callable, List, Optional

from kitsune.sysmon.tail_source import TailSource
from .panel import PanelController
from .record_buffer import DEFAULT_CAPACITY
from .session import Session, SessionStore
from .sync_hub import SyncHub


class FileAlreadyOpenError(ValueError):
    pass


def _same_file(a, b) -> bool:
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))


class Workspace:
    """Owns the sync hub and every open PanelController"""

    def __init__(self, sync_hub: Optional[SyncHub] = None,
                 session_store: Optional[SessionStore] = None,
                 tail_factory: Callable[[], TailSource] = TailSource,
                 capacity: int = DEFAULT_CAPACITY):
        """
        Initialize the workspace

        Args:
            sync_hub: Hub shared by the panels (a new disabled hub by default)
            session_store: Where sessions are saved; None disables sessions
            tail_factory: Builds the TailSource of each new panel
            capacity: Record buffer capacity of each panel
        """
        self.sync_hub = sync_hub or SyncHub()
        self.session_store = session_store
        self.tail_factory = tail_factory
        self.capacity = capacity
        self.panels: List[PanelController] = []
        self.active_panel: Optional[PanelController] = None
        self.logger = logging.getLogger(__name__)

    @property
    def is_time_sync_enabled(self) -> bool:
        return self.sync_hub.enabled

    def set_time_sync_enabled(self, enabled: bool) -> None:
        self.sync_hub.enabled = enabled

    def toggle_time_sync(self) -> bool:
        self.set_time_sync_enabled(not self.sync_hub.enabled)
        return self.sync_hub.enabled

    def find_panel(self, file_path) -> Optional[PanelController]:
        return next(
            (p for p in self.panels if p.file_path is not None and _same_file(p.file_path, file_path)),
            None
        )

    def open_file(self, file_path, save_session: bool = True) -> PanelController:
        """
        Open a file in a new panel

        Raises:
            FileAlreadyOpenError: If a panel already shows this file
            TailOpenError: If the file cannot be opened
        """
        if self.find_panel(file_path) is not None:
            raise FileAlreadyOpenError(f"File is already open: {file_path}")

        panel = PanelController(self.sync_hub, self.tail_factory(), capacity=self.capacity)
        panel.filter_to_all_requested.subscribe(self.apply_filter_to_all)

        try:
            panel.load_file(file_path)
        except Exception:
            panel.filter_to_all_requested.unsubscribe(self.apply_filter_to_all)
            panel.dispose()
            raise

        self.panels.append(panel)
        self.active_panel = panel

        if save_session:
            self.save_current_session()
        return panel

    def close_panel(self, panel: Optional[PanelController], save_session: bool = True) -> None:
        if panel is None or panel not in self.panels:
            return

        panel.filter_to_all_requested.unsubscribe(self.apply_filter_to_all)
        panel.dispose()
        self.panels.remove(panel)

        if self.active_panel is panel:
            self.active_panel = self.panels[0] if self.panels else None
        if not self.panels:
            self.sync_hub.reset()

        if save_session:
            self.save_current_session()

    def close_all_panels(self, save_session: bool = True) -> None:
        for panel in list(self.panels):
            self.close_panel(panel, save_session=False)
        self.sync_hub.reset()

        if save_session:
            self.save_current_session()

    def apply_filter_to_all(self, text: str) -> None:
        for panel in self.panels:
            panel.set_filter(text)

    # --- sessions --------------------------------------------------------

    def file_paths(self) -> List[str]:
        return [str(p.file_path) for p in self.panels if p.file_path is not None]

    def save_current_session(self) -> None:
        if self.session_store is not None:
            self.session_store.save_auto_session(self.file_paths())

    def _open_existing(self, file_paths: List[str]) -> List[PanelController]:
        opened = []
        for path in file_paths:
            if not Path(path).is_file() or self.find_panel(path) is not None:
                continue
            try:
                opened.append(self.open_file(path, save_session=False))
            except Exception as e:
                self.logger.error(f"Could not reopen {path}: {e}")
        return opened

    def restore_last_session(self) -> List[PanelController]:
        """Reopen the files of the automatic session that still exist"""
        if self.session_store is None:
            return []

        files = self.session_store.get_last_session_files()
        if files:
            self.logger.info(f"Restoring session with {len(files)} files")
        return self._open_existing(files)

    def save_session(self, name: str) -> Optional[Session]:
        if self.session_store is None or not self.panels:
            return None
        return self.session_store.save_session(name, self.file_paths())

    def load_session(self, name: str) -> List[PanelController]:
        """Replace the open panels with the files of a named session"""
        if self.session_store is None:
            return []

        session = self.session_store.get(name)
        if session is None:
            return []

        self.close_all_panels(save_session=False)
        opened = self._open_existing(session.file_paths)
        self.save_current_session()
        return opened

    def delete_session(self, name: str) -> bool:
        if self.session_store is None:
            return False
        return self.session_store.delete_session(name)

    def user_sessions(self) -> List[Session]:
        if self.session_store is None:
            return []
        return self.session_store.user_sessions()

    def shutdown(self) -> None:
        """Save the session and stop every tail"""
        self.save_current_session()
        self.close_all_panels(save_session=False)

"""
Session Store Module - Remembers which files were open

Sessions are stored as JSON next to the user's settings. The automatic
session (AUTO_SESSION) is rewritten whenever panels are opened or closed so
the last set of files can be reopened on startup.
"""
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

AUTO_SESSION = "__auto__"


class Session(BaseModel):
    name: str
    created_at: datetime = Field(default_factory=datetime.now)
    last_opened_at: datetime = Field(default_factory=datetime.now)
    file_paths: List[str] = Field(default_factory=list)
    layout: Optional[str] = None


class SessionData(BaseModel):
    last_session_name: Optional[str] = None
    sessions: List[Session] = Field(default_factory=list)


class SessionStore:
    """JSON-backed list of named sessions"""

    def __init__(self, sessions_file):
        self.sessions_file = Path(sessions_file).expanduser()
        self.logger = logging.getLogger(__name__)
        self._data = SessionData()
        self.load()

    @property
    def sessions(self) -> List[Session]:
        return list(self._data.sessions)

    @property
    def last_session(self) -> Optional[Session]:
        return self.get(self._data.last_session_name) if self._data.last_session_name else None

    def get(self, name: str) -> Optional[Session]:
        return next((s for s in self._data.sessions if s.name == name), None)

    def load(self) -> None:
        """Read the sessions file; a missing or corrupt file yields no sessions"""
        if not self.sessions_file.exists():
            return

        try:
            self._data = SessionData.model_validate_json(self.sessions_file.read_text(encoding='utf-8'))
            self.logger.info(f"Loaded {len(self._data.sessions)} sessions")
        except (OSError, ValidationError) as e:
            self.logger.error(f"Failed to load sessions from {self.sessions_file}: {e}")
            self._data = SessionData()

    def _save(self) -> None:
        try:
            self.sessions_file.parent.mkdir(parents=True, exist_ok=True)
            self.sessions_file.write_text(self._data.model_dump_json(indent=2), encoding='utf-8')
            self.logger.debug("Sessions saved")
        except OSError as e:
            self.logger.error(f"Failed to save sessions to {self.sessions_file}: {e}")

    def save_session(self, name: str, file_paths: List[str], layout: Optional[str] = None) -> Optional[Session]:
        """
        Create or update a named session with the files that still exist

        Returns:
            The stored Session, or None if none of the files exist
        """
        paths = [str(p) for p in file_paths if p and os.path.isfile(p)]
        if not paths:
            return None

        session = self.get(name)
        now = datetime.now()
        if session is not None:
            session.file_paths = paths
            session.last_opened_at = now
            session.layout = layout
        else:
            session = Session(name=name, created_at=now, last_opened_at=now,
                              file_paths=paths, layout=layout)
            self._data.sessions.append(session)

        self._data.last_session_name = name
        self._save()
        self.logger.info(f"Saved session '{name}' with {len(paths)} files")
        return session

    def save_auto_session(self, file_paths: List[str], layout: Optional[str] = None) -> Optional[Session]:
        return self.save_session(AUTO_SESSION, file_paths, layout)

    def get_auto_session(self) -> Optional[Session]:
        return self.get(AUTO_SESSION)

    def get_last_session_files(self) -> List[str]:
        """Files of the automatic session that still exist"""
        session = self.get_auto_session()
        if session is None:
            return []
        return [p for p in session.file_paths if os.path.isfile(p)]

    def delete_session(self, name: str) -> bool:
        session = self.get(name)
        if session is None:
            return False

        self._data.sessions.remove(session)
        if self._data.last_session_name == name:
            self._data.last_session_name = None
        self._save()
        self.logger.info(f"Deleted session '{name}'")
        return True

    def user_sessions(self) -> List[Session]:
        """Named sessions, most recently opened first"""
        return sorted(
            (s for s in self._data.sessions if s.name != AUTO_SESSION),
            key=lambda s: s.last_opened_at,
            reverse=True
        )

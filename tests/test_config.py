import logging
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from kitsune.app_log import configure_logging
from kitsune.config import get_settings, Settings
from kitsune.main import build_workspace


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("KITSUNE_BUFFER_CAPACITY", "KITSUNE_INITIAL_LINES", "KITSUNE_POLL_INTERVAL",
                "KITSUNE_READ_CHUNK_SIZE", "KITSUNE_LOG_DIR", "KITSUNE_LOG_LEVEL",
                "KITSUNE_SESSION_FILE"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = get_settings()
    assert settings.buffer_capacity == 50000
    assert settings.initial_lines == 100
    assert settings.poll_interval == 1.0
    assert settings.read_chunk_size == 4096
    assert settings.log_level == "INFO"


def test_environment_overrides(clean_env):
    clean_env.setenv("KITSUNE_BUFFER_CAPACITY", "500")
    clean_env.setenv("KITSUNE_POLL_INTERVAL", "0.25")
    clean_env.setenv("KITSUNE_SESSION_FILE", "/tmp/kitsune-sessions.json")

    settings = get_settings()

    assert settings.buffer_capacity == 500
    assert settings.poll_interval == 0.25
    assert settings.session_file == Path("/tmp/kitsune-sessions.json")


def test_invalid_values_are_rejected(clean_env):
    clean_env.setenv("KITSUNE_BUFFER_CAPACITY", "0")
    with pytest.raises(ValidationError):
        get_settings()

    with pytest.raises(ValidationError):
        Settings(poll_interval=0)


def test_log_level_is_validated(clean_env):
    clean_env.setenv("KITSUNE_LOG_LEVEL", "verbose")
    with pytest.raises(ValidationError):
        get_settings()

    clean_env.setenv("KITSUNE_LOG_LEVEL", "debug")
    assert get_settings().log_level == "DEBUG"


def test_build_workspace_uses_settings(temp_dir_manager):
    settings = Settings(buffer_capacity=10, initial_lines=3, poll_interval=0.5,
                        session_file=Path(temp_dir_manager) / "sessions.json")

    workspace = build_workspace(settings)
    tail = workspace.tail_factory()
    try:
        assert workspace.capacity == 10
        assert tail.initial_lines == 3
        assert tail.poll_interval == 0.5
        assert workspace.session_store.sessions_file == Path(temp_dir_manager) / "sessions.json"
        assert workspace.is_time_sync_enabled is False
    finally:
        tail.dispose()
        workspace.shutdown()


def test_configure_logging_writes_file(temp_dir_manager):
    log_dir = os.path.join(temp_dir_manager, "logs")
    logger = logging.getLogger("kitsune")
    before = list(logger.handlers)

    try:
        log_file = configure_logging(log_dir, "debug")
        configure_logging(log_dir, "debug")

        added = [h for h in logger.handlers if h not in before]
        assert len(added) == 1
        assert logger.level == logging.DEBUG

        logging.getLogger("kitsune.core.panel").info("hello from a panel")
        for handler in added:
            handler.flush()

        with open(log_file, encoding="utf-8") as f:
            line = f.read().strip()
        assert line.endswith("kitsune.core.panel - INFO - hello from a panel")
    finally:
        for handler in [h for h in logger.handlers if h not in before]:
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)


def test_main_reports_invalid_configuration(clean_env, capsys):
    from kitsune.main import main

    clean_env.setenv("KITSUNE_LOG_LEVEL", "verbose")

    assert main([]) == 2
    assert "Invalid configuration" in capsys.readouterr().out

#!/usr/bin/env python3
"""
Kitsune - Main Entry Point
Tail one or more log files side by side: kitsune [FILE ...]
"""
import logging
import sys

from pydantic import ValidationError

from kitsune.app_log import configure_logging
from kitsune.config import get_settings
from kitsune.core.session import SessionStore
from kitsune.core.sync_hub import SyncHub
from kitsune.core.workspace import Workspace
from kitsune.sysmon.tail_source import TailSource


def build_workspace(settings) -> Workspace:
    """Wire the sync hub, session store and tail sources from settings"""
    def tail_factory() -> TailSource:
        return TailSource(
            poll_interval=settings.poll_interval,
            initial_lines=settings.initial_lines,
            chunk_size=settings.read_chunk_size,
        )

    return Workspace(
        sync_hub=SyncHub(),
        session_store=SessionStore(settings.session_file),
        tail_factory=tail_factory,
        capacity=settings.buffer_capacity,
    )


def main(argv=None) -> int:
    from kitsune.UI import run_app

    files = list(sys.argv[1:] if argv is None else argv)
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}")
        return 2
    log_file = configure_logging(settings.log_dir, settings.log_level)

    logger = logging.getLogger("kitsune")
    logger.info("=== Kitsune Log Viewer started ===")
    logger.info(f"Log file: {log_file}")
    if files:
        logger.info(f"Command line files: {', '.join(files)}")

    try:
        run_app(files=files, workspace=build_workspace(settings), restore_session=not files)
    except KeyboardInterrupt:
        print("\nKitsune terminated by user")
    except Exception as e:
        logger.exception("Fatal error")
        print(f"\nError running Kitsune: {e}")
        return 1

    logger.info("Kitsune exiting")
    return 0


if __name__ == "__main__":
    sys.exit(main())

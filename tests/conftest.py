import os
import shutil
import tempfile

import pytest

from kitsune.sysmon.tail_source import TailSource


@pytest.fixture
def temp_dir_manager(request):
    """Fixture to manage temporary directories for tests."""
    temp_dir = tempfile.mkdtemp(prefix="kitsune_test_")

    def cleanup_dir():
        if os.path.exists(temp_dir):
            shutil.rmtree(temp_dir)

    request.addfinalizer(cleanup_dir)
    return temp_dir


@pytest.fixture
def write_file(temp_dir_manager):
    """Write (or append to) a file in the temporary directory and return its path."""
    def _write(name, content, mode="w"):
        path = os.path.join(temp_dir_manager, name)
        if isinstance(content, bytes):
            with open(path, mode if "b" in mode else mode + "b") as f:
                f.write(content)
        else:
            with open(path, mode, encoding="utf-8", newline="") as f:
                f.write(content)
        return path
    return _write


@pytest.fixture
def quiet_tail_factory():
    """TailSources that only read when read_new_content() is called by the test."""
    created = []

    def _factory():
        tail = TailSource(poll_interval=60, watch_events=False)
        created.append(tail)
        return tail

    yield _factory

    for tail in created:
        tail.dispose()

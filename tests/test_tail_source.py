import os
import threading
import time
from unittest.mock import MagicMock

import pytest

from kitsune.sysmon.tail_source import TailSource, TailOpenError, TailSourceDisposedError


@pytest.fixture
def tail(quiet_tail_factory):
    return quiet_tail_factory()


def _collect(tail):
    received = []
    tail.new_content.subscribe(received.append)
    return received


class TestInitialLoad:

    def test_returns_last_lines(self, tail, write_file):
        path = write_file("app.log", "".join(f"line {i}\n" for i in range(1, 251)))

        initial = tail.start_monitoring(path)

        lines = initial.split("\n")
        assert len(lines) == 100
        assert lines[0] == "line 151"
        assert lines[-1] == "line 250"
        assert tail.last_read_offset == os.path.getsize(path)
        assert tail.is_monitoring
        assert tail.file_name == "app.log"

    def test_small_chunks_keep_multibyte_characters_intact(self, write_file):
        tail = TailSource(poll_interval=60, initial_lines=5, chunk_size=7, watch_events=False)
        text = "".join(f"zeile {i} größe ✓\n" for i in range(20))
        path = write_file("utf8.log", text)
        try:
            lines = tail.start_monitoring(path).split("\n")
        finally:
            tail.dispose()

        assert lines == [f"zeile {i} größe ✓" for i in range(15, 20)]

    def test_fewer_lines_than_limit(self, tail, write_file):
        path = write_file("short.log", "one\ntwo\nthree\n")
        assert tail.start_monitoring(path) == "one\ntwo\nthree"

    def test_last_line_without_newline(self, tail, write_file):
        path = write_file("partial.log", "one\ntwo")
        assert tail.start_monitoring(path) == "one\ntwo"

    def test_trailing_blank_lines_are_skipped(self, tail, write_file):
        path = write_file("blank_end.log", "one\ntwo\n\n\n")
        assert tail.start_monitoring(path) == "one\ntwo"

    def test_inner_blank_lines_are_kept(self, tail, write_file):
        path = write_file("blank_mid.log", "one\n\ntwo\n")
        assert tail.start_monitoring(path) == "one\n\ntwo"

    def test_crlf_line_endings(self, tail, write_file):
        path = write_file("crlf.log", "one\r\ntwo\r\n")
        assert tail.start_monitoring(path) == "one\ntwo"

    def test_byte_order_mark_is_dropped(self, tail, write_file):
        path = write_file("bom.log", b"\xef\xbb\xbffirst\nsecond\n")
        assert tail.start_monitoring(path) == "first\nsecond"

    def test_read_from_start_returns_everything(self, tail, write_file):
        content = "".join(f"line {i}\n" for i in range(300))
        path = write_file("full.log", content)

        assert tail.start_monitoring(path, read_from_start=True) == content
        assert tail.last_read_offset == len(content)

    def test_empty_file(self, tail, write_file):
        path = write_file("empty.log", "")
        assert tail.start_monitoring(path) == ""
        assert tail.last_read_offset == 0

    def test_missing_file_raises_and_reports(self, tail, temp_dir_manager):
        errors = []
        tail.error_occurred.subscribe(errors.append)

        with pytest.raises(TailOpenError):
            tail.start_monitoring(os.path.join(temp_dir_manager, "missing.log"))

        assert len(errors) == 1
        assert isinstance(errors[0], OSError)
        assert not tail.is_monitoring


class TestIncrementalRead:

    def test_appended_bytes_are_emitted_once(self, tail, write_file):
        path = write_file("grow.log", "start\n")
        tail.start_monitoring(path)
        received = _collect(tail)

        write_file("grow.log", "next 1\nnext 2\n", mode="a")
        tail.read_new_content()
        tail.read_new_content()

        assert received == ["next 1\nnext 2\n"]
        assert tail.last_read_offset == os.path.getsize(path)

    def test_unchanged_file_emits_nothing(self, tail, write_file):
        path = write_file("static.log", "only\n")
        tail.start_monitoring(path)
        received = _collect(tail)

        tail.read_new_content()

        assert received == []

    def test_rotation_restarts_from_beginning(self, tail, write_file):
        path = write_file("rotate.log", "x" * 999 + "\n")
        tail.start_monitoring(path)
        assert tail.last_read_offset == 1000
        received = _collect(tail)

        write_file("rotate.log", "y" * 199 + "\n")
        tail.read_new_content()

        assert received == ["y" * 199 + "\n"]
        assert tail.last_read_offset == 200

    def test_deleted_file_reports_error_and_keeps_monitoring(self, tail, write_file):
        path = write_file("gone.log", "line\n")
        tail.start_monitoring(path)
        errors = []
        tail.error_occurred.subscribe(errors.append)

        os.remove(path)
        tail.read_new_content()

        assert len(errors) == 1
        assert tail.is_monitoring

    def test_no_read_after_stop(self, tail, write_file):
        path = write_file("stopped.log", "a\n")
        tail.start_monitoring(path)
        received = _collect(tail)

        tail.stop_monitoring()
        write_file("stopped.log", "b\n", mode="a")
        tail.read_new_content()

        assert received == []

    def test_concurrent_reads_deliver_each_byte_once(self, tail, write_file):
        path = write_file("race.log", "")
        tail.start_monitoring(path)
        received = _collect(tail)
        write_file("race.log", "".join(f"{i}\n" for i in range(500)), mode="a")

        threads = [threading.Thread(target=tail.read_new_content) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert "".join(received) == "".join(f"{i}\n" for i in range(500))


class TestLifecycle:

    def test_stop_is_idempotent(self, tail, write_file):
        path = write_file("idle.log", "a\n")
        tail.start_monitoring(path)

        tail.stop_monitoring()
        tail.stop_monitoring()

        assert not tail.is_monitoring

    def test_start_after_dispose_raises(self, tail, write_file):
        path = write_file("disposed.log", "a\n")
        tail.dispose()
        tail.dispose()

        assert tail.is_disposed
        with pytest.raises(TailSourceDisposedError):
            tail.start_monitoring(path)

    def test_restart_switches_file(self, tail, write_file):
        first = write_file("first.log", "1\n")
        second = write_file("second.log", "2\n")

        tail.start_monitoring(first)
        assert tail.start_monitoring(second) == "2"
        assert tail.file_name == "second.log"

    def test_error_subscriber_failure_does_not_escape(self, tail, write_file):
        path = write_file("noisy.log", "a\n")
        tail.start_monitoring(path)
        tail.error_occurred.subscribe(MagicMock(side_effect=RuntimeError("ui gone")))

        os.remove(path)
        tail.read_new_content()


def _wait_for(received, expected, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if "".join(received) == expected:
            return True
        time.sleep(0.05)
    return False


def test_polling_picks_up_appends(write_file):
    tail = TailSource(poll_interval=0.1, watch_events=False)
    path = write_file("poll.log", "start\n")
    try:
        tail.start_monitoring(path)
        received = _collect(tail)

        write_file("poll.log", "polled\n", mode="a")

        assert _wait_for(received, "polled\n")
    finally:
        tail.dispose()


def test_change_notifications_pick_up_appends(write_file):
    tail = TailSource(poll_interval=30)
    path = write_file("watched.log", "start\n")
    try:
        tail.start_monitoring(path)
        time.sleep(0.1)  # Give observer time to start
        received = _collect(tail)

        write_file("watched.log", "notified\n", mode="a")

        assert _wait_for(received, "notified\n")
    finally:
        tail.dispose()

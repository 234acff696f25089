from datetime import datetime
from unittest.mock import MagicMock

from kitsune.core.sync_hub import SyncHub, SyncEvent

T1 = datetime(2024, 1, 15, 10, 0, 0)
T2 = datetime(2024, 1, 15, 10, 5, 0)


def test_disabled_by_default():
    hub = SyncHub()
    callback = MagicMock()
    hub.subscribe(callback)

    assert hub.enabled is False
    assert hub.broadcast(T1, 1) is False
    callback.assert_not_called()
    assert hub.state() == (None, None)


def test_broadcast_updates_state_and_notifies():
    hub = SyncHub(enabled=True)
    callback = MagicMock()
    hub.subscribe(callback)

    assert hub.broadcast(T1, 3) is True

    callback.assert_called_once_with(SyncEvent(T1, 3))
    assert hub.current_time == T1
    assert hub.current_source == 3
    assert hub.is_current_source(3)
    assert not hub.is_current_source(4)


def test_latest_broadcast_wins():
    hub = SyncHub(enabled=True)
    hub.broadcast(T1, 1)
    hub.broadcast(T2, 2)
    assert hub.state() == (T2, 2)


def test_toggling_resets_state():
    hub = SyncHub(enabled=True)
    hub.broadcast(T1, 1)

    hub.enabled = False
    assert hub.state() == (None, None)
    assert not hub.is_current_source(1)

    hub.enabled = True
    assert hub.state() == (None, None)


def test_reset_and_unsubscribe():
    hub = SyncHub(enabled=True)
    callback = MagicMock()
    hub.subscribe(callback)
    hub.broadcast(T1, 1)

    hub.reset()
    hub.unsubscribe(callback)
    hub.broadcast(T2, 2)

    assert callback.call_count == 1
    assert hub.state() == (T2, 2)


def test_subscriber_may_read_state_during_delivery():
    hub = SyncHub(enabled=True)
    seen = []
    hub.subscribe(lambda event: seen.append(hub.is_current_source(event.source)))

    hub.broadcast(T1, 5)

    assert seen == [True]

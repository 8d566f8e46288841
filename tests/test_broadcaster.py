from __future__ import annotations

import json
import threading

from device_monitor.services import broadcaster as bc
from device_monitor.services.broadcaster import EventBroadcaster, format_sse, parse_event_id
from device_monitor.services.ingest_service import ingest_report
from device_monitor.services.notifier import ChangeNotifier
from device_monitor.services.state_store import DeviceStore

from .conftest import FakeClock


def _parse(frame: str) -> tuple[str, str, dict[str, object]]:
    assert frame.endswith("\n\n")
    id_line, event_line, data_line = frame.rstrip("\n").split("\n")
    assert id_line.startswith("id: ")
    assert event_line.startswith("event: ")
    assert data_line.startswith("data: ")
    return id_line[4:], event_line[7:], json.loads(data_line[6:])


def _setup(tmp_path, clock: FakeClock, **kwargs: object):
    store = DeviceStore(str(tmp_path / "devices.json"), timezone_name="UTC", clock=clock)
    notifier = ChangeNotifier()
    stop = threading.Event()
    broadcaster = EventBroadcaster(
        store,
        notifier,
        heartbeat_interval=3,
        poll_interval=0.5,
        clock=clock,
        sleep=clock.sleep,
        stop_event=stop,
        **kwargs,
    )
    return store, notifier, stop, broadcaster


def test_format_sse_framing() -> None:
    frame = format_sse({"type": "heartbeat", "timestamp": 1002})

    assert frame == 'id: 1002\nevent: heartbeat\ndata: {"type": "heartbeat", "timestamp": 1002}\n\n'


def test_format_sse_keeps_unicode_and_ms_ids() -> None:
    frame = format_sse({"type": "device_update", "timestamp": 1000.001, "device": {"location": "上海"}})

    assert frame.startswith("id: 1000.001\n")
    assert "上海" in frame


def test_parse_event_id_tolerates_garbage() -> None:
    assert parse_event_id(None) == 0
    assert parse_event_id("abc") == 0
    assert parse_event_id("-5") == 0
    assert parse_event_id(" 1700000000 ") == 1700000000.0


def test_connect_sends_connected_then_empty_snapshot(tmp_path, clock: FakeClock) -> None:
    _store, _notifier, _stop, broadcaster = _setup(tmp_path, clock)
    stream = broadcaster.stream()

    assert broadcaster.state == bc.CONNECTING
    connected = _parse(next(stream))
    initial = _parse(next(stream))

    assert connected[1] == "connected"
    assert connected[2]["clientId"] == broadcaster.client_id
    assert connected[2]["clientId"].startswith("sse_")
    assert connected[0] == "1000"
    assert initial[1] == "initial_data"
    assert initial[2]["devices"] == {}
    assert initial[2]["count"] == 0


def test_snapshot_contains_current_devices(tmp_path, clock: FakeClock) -> None:
    store, notifier, _stop, broadcaster = _setup(tmp_path, clock)
    ingest_report({"deviceId": "phone-1"}, "10.0.0.1", store, notifier)
    stream = broadcaster.stream()

    next(stream)
    _id, _event, data = _parse(next(stream))

    assert list(data["devices"]) == ["phone-1"]
    assert data["count"] == 1


def test_update_reaches_open_stream_within_one_poll(tmp_path, clock: FakeClock) -> None:
    store, notifier, _stop, broadcaster = _setup(tmp_path, clock)
    stream = broadcaster.stream()
    next(stream)
    next(stream)

    ingest_report({"deviceId": "X", "batteryLevel": 77}, "10.0.0.1", store, notifier)
    event_id, event_type, data = _parse(next(stream))

    assert broadcaster.state == bc.STREAMING
    assert event_type == "device_update"
    assert data["deviceId"] == "X"
    assert data["device"]["batteryLevel"] == 77
    assert data["totalDevices"] == 1
    assert float(event_id) == data["timestamp"]
    assert clock.now - 1000.0 <= 0.5


def test_rapid_updates_collapse_to_the_last(tmp_path, clock: FakeClock) -> None:
    store, notifier, stop, broadcaster = _setup(tmp_path, clock)
    stream = broadcaster.stream()
    next(stream)
    next(stream)

    ingest_report({"deviceId": "first"}, "10.0.0.1", store, notifier)
    ingest_report({"deviceId": "second"}, "10.0.0.1", store, notifier)
    _id, _event, data = _parse(next(stream))
    stop.set()

    assert data["deviceId"] == "second"
    assert data["totalDevices"] == 2
    assert list(stream) == []
    assert broadcaster.cursor == data["timestamp"]


def test_event_before_connect_is_not_replayed(tmp_path, clock: FakeClock) -> None:
    store, notifier, stop, broadcaster = _setup(tmp_path, clock)
    ingest_report({"deviceId": "early"}, "10.0.0.1", store, notifier)

    def _sleep(seconds: float) -> None:
        clock.sleep(seconds)
        stop.set()

    broadcaster.sleep = _sleep
    frames = [_parse(frame) for frame in broadcaster.stream()]

    assert [f[1] for f in frames] == ["connected", "initial_data"]
    assert "early" in frames[1][2]["devices"]


def test_resume_hint_moves_cursor_forward(tmp_path, clock: FakeClock) -> None:
    store, notifier, _stop, broadcaster = _setup(tmp_path, clock, last_event_id="5000")
    stream = broadcaster.stream()
    next(stream)
    next(stream)

    assert broadcaster.cursor == 5000.0

    ingest_report({"deviceId": "late"}, "10.0.0.1", store, notifier)
    clock.now = 5002.5
    notifier.publish({"type": "device_update", "deviceId": "later", "timestamp": clock.now})

    _id, event_type, data = _parse(next(stream))
    assert event_type == "device_update"
    assert data["deviceId"] == "later"


def test_heartbeat_on_interval_multiples_only_once(tmp_path, clock: FakeClock) -> None:
    _store, _notifier, stop, broadcaster = _setup(tmp_path, clock)

    def _sleep(seconds: float) -> None:
        clock.sleep(seconds)
        if clock.now >= 1007:
            stop.set()

    broadcaster.sleep = _sleep
    frames = [_parse(frame) for frame in broadcaster.stream()]
    heartbeats = [f[2]["timestamp"] for f in frames if f[1] == "heartbeat"]

    assert heartbeats == [1002, 1005]
    assert broadcaster.state == bc.CLOSED


def test_no_heartbeat_in_first_second(tmp_path) -> None:
    clock = FakeClock(999.0)
    _store, _notifier, stop, broadcaster = _setup(tmp_path, clock)

    def _sleep(seconds: float) -> None:
        clock.sleep(seconds)
        if clock.now >= 1000:
            stop.set()

    broadcaster.sleep = _sleep
    frames = [_parse(frame)[1] for frame in broadcaster.stream()]

    assert "heartbeat" not in frames


def test_disconnect_ends_stream(tmp_path, clock: FakeClock) -> None:
    _store, _notifier, _stop, broadcaster = _setup(tmp_path, clock, is_disconnected=lambda: True)

    frames = list(broadcaster.stream())

    assert len(frames) == 2
    assert broadcaster.state == bc.CLOSED


def test_closing_generator_marks_closed(tmp_path, clock: FakeClock) -> None:
    _store, _notifier, _stop, broadcaster = _setup(tmp_path, clock)
    stream = broadcaster.stream()
    next(stream)

    stream.close()

    assert broadcaster.state == bc.CLOSED

from __future__ import annotations

import pytest

import device_monitor.extensions as extensions
from device_monitor import create_app


class FakeClock:
    """Manually advanced clock; ``sleep`` moves time forward instead of blocking."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "DATA_DIR": str(tmp_path / "data"),
        "TIMEZONE": "UTC",
        "BG_IMAGE_DIR": str(tmp_path / "webimg"),
        "BG_VIDEO_DIR": str(tmp_path / "webmp4"),
    })
    yield app
    extensions.shutdown.clear()


@pytest.fixture
def client(app):
    return app.test_client()

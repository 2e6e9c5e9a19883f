"""
Tests for token notification sinks.
"""

import json
import threading
from unittest.mock import MagicMock

import pytest

from conftest import RecordingSink
from doorlockd.config.provider import NotifyConfig
from doorlockd.modules.notify import (
    BackgroundSink,
    CompositeSink,
    LoggingSink,
    QRCodeSink,
    RedisSink,
    build_sink,
)

TOKEN = "00000001deadbeef"
URL = "https://door.example/?token=" + TOKEN


class BrokenSink:
    def publish(self, token_hex, full_url):
        raise RuntimeError("offline")


class TestRedisSink:
    def test_publishes_and_stores_latest(self):
        redis_client = MagicMock()
        RedisSink(redis_client, channel="door:token").publish(TOKEN, URL)

        channel, message = redis_client.publish.call_args[0]
        assert channel == "door:token"
        data = json.loads(message)
        assert data["token"] == TOKEN
        assert data["url"] == URL
        assert "timestamp" in data

        redis_client.set.assert_called_once_with("door:token:latest", message)


class TestQRCodeSink:
    def test_writes_png(self, tmp_path):
        path = tmp_path / "display" / "qr.png"
        QRCodeSink(str(path)).publish(TOKEN, URL)

        assert path.read_bytes().startswith(b"\x89PNG")
        assert [p.name for p in path.parent.iterdir()] == ["qr.png"]

    def test_replaces_previous_image(self, tmp_path):
        path = tmp_path / "qr.png"
        sink = QRCodeSink(str(path))
        sink.publish(TOKEN, URL)
        first = path.read_bytes()

        sink.publish("ffffffffffffffff", "https://door.example/?token=" + "f" * 16 + "/longer")

        assert path.read_bytes() != first


class TestCompositeSink:
    def test_failure_does_not_stop_other_sinks(self):
        recorder = RecordingSink()
        CompositeSink([BrokenSink(), recorder]).publish(TOKEN, URL)

        assert recorder.published == [(TOKEN, URL)]

    def test_close_closes_children(self):
        child = MagicMock()
        CompositeSink([LoggingSink(), child]).close()
        child.close.assert_called_once()


class TestBackgroundSink:
    def test_delivers_in_order(self):
        recorder = RecordingSink()
        sink = BackgroundSink(recorder)

        sink.publish("a", "url-a")
        sink.publish("b", "url-b")
        sink.flush()

        assert recorder.published == [("a", "url-a"), ("b", "url-b")]
        sink.close()

    def test_survives_failing_sink(self):
        inner = MagicMock()
        inner.publish.side_effect = [RuntimeError("offline"), None]
        sink = BackgroundSink(inner)

        sink.publish("a", "url-a")
        sink.publish("b", "url-b")
        sink.close()

        assert inner.publish.call_count == 2
        inner.close.assert_called_once()

    def test_close_leaves_busy_sink_open(self):
        release = threading.Event()
        inner = MagicMock()
        inner.publish.side_effect = lambda token_hex, full_url: release.wait(5)
        sink = BackgroundSink(inner)

        sink.publish("a", "url-a")
        sink.close(timeout=0.05)

        inner.close.assert_not_called()
        release.set()


class TestBuildSink:
    def test_default_is_background_logging(self):
        sink = build_sink(NotifyConfig())
        try:
            assert isinstance(sink, BackgroundSink)
            assert [type(s) for s in sink.sink.sinks] == [LoggingSink]
        finally:
            sink.close()

    def test_synchronous_with_targets(self, tmp_path):
        config = NotifyConfig(
            redis_url="redis://localhost:6379/0",
            redis_channel="door:token",
            qr_path=str(tmp_path / "qr.png"),
            async_notify=False,
        )
        sink = build_sink(config)

        assert isinstance(sink, CompositeSink)
        assert [type(s) for s in sink.sinks] == [LoggingSink, RedisSink, QRCodeSink]
        assert sink.sinks[1].channel == "door:token"

"""
Token notification sinks.

Each rotation publishes the new token once. Sinks may raise; the composite
and background sinks log and absorb those errors.
"""

import json
import logging
import os
import queue
import tempfile
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import List, Optional, Protocol

import qrcode
import redis

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Protocol for token notification targets."""

    def publish(self, token_hex: str, full_url: str) -> None:
        """
        Publish a freshly generated token.

        Args:
            token_hex: Token as fixed-width hexadecimal string
            full_url: Display URL with the token embedded
        """
        ...


class LoggingSink:
    """Writes every new token URL to the log."""

    def publish(self, token_hex: str, full_url: str) -> None:
        logger.info(f"Current token URL: {full_url}")


class RedisSink:
    """
    Publishes tokens on a Redis pub/sub channel.

    The latest message is also stored under ``<channel>:latest`` so that
    display clients connecting later can pick it up.
    """

    def __init__(self, redis_client, channel: str = "doorlockd:token"):
        """
        Initialize Redis sink.

        Args:
            redis_client: Synchronous Redis client
            channel: Pub/sub channel name
        """
        self.redis = redis_client
        self.channel = channel

    @classmethod
    def from_url(cls, url: str, channel: str = "doorlockd:token") -> "RedisSink":
        return cls(redis.Redis.from_url(url, decode_responses=True), channel)

    def publish(self, token_hex: str, full_url: str) -> None:
        message = json.dumps(
            {
                "token": token_hex,
                "url": full_url,
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )
        self.redis.set(f"{self.channel}:latest", message)
        self.redis.publish(self.channel, message)

    def close(self) -> None:
        self.redis.close()


class QRCodeSink:
    """Renders the token URL as a PNG QR code."""

    def __init__(self, path: str, box_size: int = 5, border: int = 4):
        self.path = Path(path)
        self.box_size = box_size
        self.border = border

    def publish(self, token_hex: str, full_url: str) -> None:
        code = qrcode.QRCode(
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        code.add_data(full_url)
        code.make(fit=True)
        image = code.make_image()

        # Write next to the target and rename so readers never see a partial file
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".qr-", suffix=".png")
        try:
            with os.fdopen(fd, "wb") as f:
                image.save(f)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise


class CompositeSink:
    """Fans a token out to several sinks."""

    def __init__(self, sinks: List[NotificationSink]):
        self.sinks = list(sinks)

    def publish(self, token_hex: str, full_url: str) -> None:
        for sink in self.sinks:
            try:
                sink.publish(token_hex, full_url)
            except Exception as e:
                logger.error(f"{type(sink).__name__} failed to publish token: {e}")

    def close(self) -> None:
        for sink in self.sinks:
            if hasattr(sink, "close"):
                sink.close()


_STOP = object()


class BackgroundSink:
    """
    Moves publishing off the caller's thread.

    publish() only enqueues; a worker thread delivers to the wrapped sink
    in order. close() delivers what is queued and stops the worker.
    """

    def __init__(self, sink: NotificationSink):
        self.sink = sink
        self._queue: "queue.Queue" = queue.Queue()
        self._worker = threading.Thread(target=self._deliver, daemon=True, name="token-notifier")
        self._worker.start()

    def publish(self, token_hex: str, full_url: str) -> None:
        self._queue.put((token_hex, full_url))

    def close(self, timeout: Optional[float] = 5.0) -> None:
        self._queue.put(_STOP)
        self._worker.join(timeout)
        if self._worker.is_alive():
            logger.warning("Token notifier still busy, leaving sink open")
            return
        if hasattr(self.sink, "close"):
            self.sink.close()

    def _deliver(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self.sink.publish(*item)
            except Exception as e:
                logger.error(f"Failed to publish token: {e}")
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """Block until everything queued so far has been delivered."""
        self._queue.join()


def build_sink(notify_config) -> NotificationSink:
    """
    Compose the configured sinks.

    Args:
        notify_config: NotifyConfig

    Returns:
        NotificationSink publishing to the log and to every configured target
    """
    sinks: List[NotificationSink] = [LoggingSink()]

    if notify_config.redis_url:
        logger.info(f"Publishing tokens to Redis channel {notify_config.redis_channel}")
        sinks.append(RedisSink.from_url(notify_config.redis_url, notify_config.redis_channel))

    if notify_config.qr_path:
        logger.info(f"Writing token QR code to {notify_config.qr_path}")
        sinks.append(QRCodeSink(notify_config.qr_path))

    sink = CompositeSink(sinks)
    if notify_config.async_notify:
        return BackgroundSink(sink)
    return sink

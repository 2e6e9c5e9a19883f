"""
Notify Module - Black Box Interface

Purpose: Make each new token available for display (e.g. as a QR code)
Interface: publish(token_hex, full_url), build_sink()
Hidden: Display backends, delivery threads

Sinks never fail a door request; delivery errors are logged.
"""

from .sinks import (
    BackgroundSink,
    CompositeSink,
    LoggingSink,
    NotificationSink,
    QRCodeSink,
    RedisSink,
    build_sink,
)

__all__ = [
    "BackgroundSink",
    "CompositeSink",
    "LoggingSink",
    "NotificationSink",
    "QRCodeSink",
    "RedisSink",
    "build_sink",
]

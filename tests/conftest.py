"""
Shared pytest fixtures for doorlockd tests.

This module provides common fixtures including:
- RecordingSink: collects published tokens
- Deterministic random sources for predictable tokens
- Logic instances wired to a simulated door and static credentials
"""

import itertools
import json
import os
import sys
import threading
import time
from typing import Callable, List, Tuple

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from doorlockd.modules.auth import IdentityTemplate, StaticCredentialVerifier
from doorlockd.modules.door import DoorState, SimulatedDoor
from doorlockd.modules.logic import Logic

WEB_PREFIX = "https://door.example/?token="


class RecordingSink:
    """Notification sink that remembers every published token."""

    def __init__(self):
        self.published: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def publish(self, token_hex: str, full_url: str) -> None:
        with self._lock:
            self.published.append((token_hex, full_url))


def counting_random_source() -> Callable[[], int]:
    """Random source returning 1, 2, 3, ... so tokens are predictable."""
    counter = itertools.count(1)
    return lambda: next(counter)


def make_payload(token: str, /, action: str = "unlock", **overrides) -> str:
    """Build a request payload with valid defaults."""
    data = {
        "action": action,
        "ip": "192.0.2.10",
        "user": "alice",
        "password": "secret",
        "token": token,
    }
    data.update(overrides)
    return json.dumps(data)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll until predicate is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def door():
    return SimulatedDoor(initial_state=DoorState.LOCKED)


@pytest.fixture
def verifier():
    return StaticCredentialVerifier({"alice": "secret", "bob": "hunter2"})


@pytest.fixture
def make_logic(door, verifier, sink):
    """Factory for Logic instances; rotation threads are stopped on teardown."""
    created: List[Logic] = []

    def _make(token_timeout: float = 60.0, **kwargs) -> Logic:
        kwargs.setdefault("random_source", counting_random_source())
        logic = Logic(
            kwargs.pop("door", door),
            kwargs.pop("verifier", verifier),
            kwargs.pop("identity_template", IdentityTemplate("%s")),
            token_timeout,
            WEB_PREFIX,
            sink=kwargs.pop("sink", sink),
            **kwargs,
        )
        created.append(logic)
        return logic

    yield _make

    for logic in created:
        logic.shutdown(timeout=5)


@pytest.fixture
def logic(make_logic):
    return make_logic()

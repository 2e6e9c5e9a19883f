"""
Rotating token management.

Exactly one current and at most one previous token exist at any time.
The previous token is only accepted while it is still inside its grace
period, which is granted when it was retired by a timeout and revoked when
it was retired because a door action consumed it.
"""

import logging
import re
import secrets
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TOKEN_BITS = 64
TOKEN_HEX_WIDTH = TOKEN_BITS // 4

_TOKEN_PATTERN = re.compile(r"(?:0[xX])?([0-9a-fA-F]{1,16})")


class InvalidTokenFormat(ValueError):
    """Raised when a token string cannot be parsed."""


def format_token(token: int) -> str:
    """Render a token as fixed-width lowercase hexadecimal."""
    return f"{token:0{TOKEN_HEX_WIDTH}x}"


def parse_token(value: str) -> int:
    """
    Parse the textual form of a token.

    Accepts 1-16 hex digits with an optional 0x prefix.

    Raises:
        InvalidTokenFormat: If the string is not a valid token
    """
    if not isinstance(value, str):
        raise InvalidTokenFormat(f"token must be a string, got {type(value).__name__}")

    match = _TOKEN_PATTERN.fullmatch(value)
    if not match:
        raise InvalidTokenFormat(f"not a hexadecimal 64-bit value: {value!r}")

    return int(match.group(1), 16)


def _default_random_source() -> int:
    return secrets.randbits(32)


class TokenManager:
    """
    Owns the current/previous token pair and the rotation schedule.

    None of the token operations take the lock themselves: the owner holds
    it around every call. The rotation thread acquires it through the
    condition variable for each wait and each firing.
    """

    def __init__(
        self,
        lock: threading.Lock,
        token_timeout: float,
        web_prefix: str,
        sink=None,
        random_source: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize token manager and draw the first token.

        Args:
            lock: Lock shared with the owner of the door state
            token_timeout: Seconds between scheduled rotations
            web_prefix: URL prefix the token is appended to for display
            sink: NotificationSink informed of every new token
            random_source: Callable returning a 32-bit random integer
        """
        if token_timeout <= 0:
            raise ValueError("token_timeout must be positive")

        self.token_timeout = token_timeout
        self.web_prefix = web_prefix
        self._sink = sink
        self._random = random_source or _default_random_source
        self._condition = threading.Condition(lock)
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._rotated = False

        self._current: Optional[int] = None
        self._previous: Optional[int] = None
        self._previous_still_valid = False

        # Nothing has been handed out yet, so there is no grace token.
        self.generate_and_rotate(True)

    @property
    def current_token(self) -> str:
        return format_token(self._current)

    @property
    def previous_token(self) -> Optional[str]:
        if self._previous is None:
            return None
        return format_token(self._previous)

    @property
    def previous_still_valid(self) -> bool:
        return self._previous_still_valid

    @property
    def current_url(self) -> str:
        return self.web_prefix + self.current_token

    def _draw(self) -> int:
        high = self._random() & 0xFFFFFFFF
        low = self._random() & 0xFFFFFFFF
        return (high << 32) | low

    def generate_and_rotate(self, preceding_action_occurred: bool) -> None:
        """
        Retire the current token and draw a new one.

        Args:
            preceding_action_occurred: True if a door action consumed the
                current token, which then dies immediately. False for
                timeout rotations, which keep the old token valid until
                the next rotation.
        """
        self._previous = self._current
        self._previous_still_valid = not preceding_action_occurred and self._previous is not None
        self._current = self._draw()

        token_hex = self.current_token
        logger.info(
            f"New token generated: {token_hex} old token: {self.previous_token} is "
            f"{'still' if self._previous_still_valid else 'not'} valid"
        )

        if self._sink is None:
            return

        try:
            self._sink.publish(token_hex, self.web_prefix + token_hex)
        except Exception as e:
            logger.error(f"Failed to publish new token: {e}")

    def is_valid(self, candidate: str) -> bool:
        """
        Check a token supplied by a client.

        Returns:
            True for the current token, or for the previous token while it
            is still valid. False for anything else, including strings that
            are not tokens at all.
        """
        try:
            token = parse_token(candidate)
        except InvalidTokenFormat as e:
            logger.warning(f"Token check failed: {e}")
            return False

        if token == self._current:
            logger.info("Token check successful")
            return True

        if self._previous_still_valid and token == self._previous:
            logger.info("Token check successful (previous token)")
            return True

        return False

    # Rotation schedule

    def start(self) -> None:
        """Start the background rotation thread."""
        if self._thread and self._thread.is_alive():
            return

        with self._condition:
            self._running = True
            self._rotated = False

        self._thread = threading.Thread(target=self._rotate_periodically, daemon=True, name="token-rotator")
        self._thread.start()
        logger.info(f"Token rotation started (timeout: {self.token_timeout}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the rotation thread and wait for it to exit."""
        with self._condition:
            self._running = False
            self._condition.notify_all()

        if self._thread:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Token rotation thread did not stop in time")
            else:
                logger.info("Token rotation stopped")
            self._thread = None

    def notify_rotated(self) -> None:
        """
        Tell the rotation thread that a rotation just happened.

        The scheduled rotation for the running interval is dropped and a
        fresh full interval starts. Caller must hold the lock.
        """
        self._rotated = True
        self._condition.notify_all()

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def _rotate_periodically(self) -> None:
        with self._condition:
            while self._running:
                self._rotated = False
                woken = self._condition.wait_for(
                    lambda: self._rotated or not self._running,
                    timeout=self.token_timeout,
                )

                if not self._running:
                    break

                if woken:
                    # Already rotated by a door action, re-arm.
                    continue

                self.generate_and_rotate(False)

"""
Request authorization pipeline.

A request is checked in a fixed order and stops at the first failure:
JSON shape, token, credentials, then the door action. Every outcome,
including unexpected errors, is reported as a Response code.

The token pair and the door state are only touched while holding the
single lock, which is also taken by every scheduled token rotation.
"""

import json
import logging
import threading
from typing import Callable, Optional, Union

from pydantic import ValidationError

from ..api.models import DoorRequest, Response
from ..auth.interfaces import CredentialVerifier, IdentityTemplate
from ..door.door import Door, DoorState
from ..token.manager import TokenManager

logger = logging.getLogger(__name__)


class Logic:
    """
    Authorization engine for a single door.

    Usage:
        with Logic(door, verifier, IdentityTemplate("uid=%s,dc=example"), 60, prefix) as logic:
            response = logic.parse_request(payload)
    """

    def __init__(
        self,
        door: Door,
        verifier: CredentialVerifier,
        identity_template: IdentityTemplate,
        token_timeout: float,
        web_prefix: str,
        sink=None,
        random_source: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize logic and create the first token.

        Args:
            door: Door actuator
            verifier: Credential verifier
            identity_template: Template turning a username into a service identity
            token_timeout: Seconds between scheduled token rotations
            web_prefix: URL prefix for displaying the token
            sink: NotificationSink for new tokens
            random_source: Callable returning 32-bit random integers
        """
        self._lock = threading.Lock()
        self._door = door
        self._verifier = verifier
        self._identity_template = identity_template
        self._tokens = TokenManager(
            self._lock,
            token_timeout,
            web_prefix,
            sink=sink,
            random_source=random_source,
        )

    # Lifecycle

    def start(self) -> None:
        """Start scheduled token rotation."""
        self._tokens.start()

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop scheduled token rotation and wait for it to finish."""
        self._tokens.stop(timeout)

    def __enter__(self) -> "Logic":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # Read-only views

    @property
    def door_state(self) -> DoorState:
        with self._lock:
            return self._door.state()

    @property
    def current_token(self) -> str:
        with self._lock:
            return self._tokens.current_token

    @property
    def current_url(self) -> str:
        with self._lock:
            return self._tokens.current_url

    @property
    def tokens(self) -> TokenManager:
        return self._tokens

    # Request handling

    def parse_request(self, payload: Union[str, bytes]) -> Response:
        """
        Process one raw request payload.

        Args:
            payload: JSON object with action, ip, user, password and token

        Returns:
            Exactly one Response code. Never raises.
        """
        with self._lock:
            logger.info("Incoming request...")
            try:
                return self._process(payload)
            except Exception:
                logger.exception("Unexpected error while processing request")
                return Response.FAIL

    def _process(self, payload: Union[str, bytes]) -> Response:
        try:
            data = json.loads(payload)
        except (TypeError, ValueError, RecursionError):
            logger.warning("Request is not valid JSON")
            return Response.NOT_JSON

        if not isinstance(data, dict):
            logger.warning("Request is not a JSON object")
            return Response.NOT_JSON

        try:
            request = DoorRequest.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Error parsing JSON: {e.error_count()} invalid field(s)")
            return Response.JSON_ERROR

        logger.info(f"  Action: {request.action}")
        logger.info(f"  User  : {request.user}")
        logger.info(f"  IP    : {request.ip}")
        logger.info(f"  Token : {request.token}")

        if not self._tokens.is_valid(request.token):
            logger.error("User provided invalid token")
            return Response.INVALID_TOKEN

        identity = self._identity_template.render(request.user)
        result = self._verifier.verify(identity, request.password)
        if result != Response.SUCCESS:
            logger.error(f"Credential check failed: {result.name}")
            return result

        if request.action == "lock":
            return self._lock_door()
        if request.action == "unlock":
            return self._unlock_door()

        logger.error(f"Unknown action: {request.action}")
        return Response.UNKNOWN_ACTION

    def _lock_door(self) -> Response:
        if self._door.state() == DoorState.LOCKED:
            logger.warning("Unable to lock: already locked")
            return Response.ALREADY_LOCKED

        self._door.lock()
        self._rotate_after_action()
        return Response.SUCCESS

    def _unlock_door(self) -> Response:
        previous_state = self._door.state()
        self._door.unlock()

        # Any accepted unlock consumes the token, even if nothing moved
        self._rotate_after_action()

        if previous_state == DoorState.UNLOCKED:
            logger.warning("Unable to unlock: already unlocked")
            return Response.ALREADY_UNLOCKED

        return Response.SUCCESS

    def _rotate_after_action(self) -> None:
        self._tokens.generate_and_rotate(True)
        self._tokens.notify_rotated()

"""In-memory credential verifier for development and testing."""

import logging
import secrets
from typing import Dict

from ..api.models import Response

logger = logging.getLogger(__name__)


class StaticCredentialVerifier:
    """Verifies credentials against a fixed identity -> password mapping."""

    def __init__(self, users: Dict[str, str]):
        self._users = dict(users)

    def verify(self, identity: str, password: str) -> Response:
        expected = self._users.get(identity)

        if expected is None or not password:
            logger.error(f"Credential check for {identity!r} failed")
            return Response.INVALID_CREDENTIALS

        if not secrets.compare_digest(password.encode("utf-8"), expected.encode("utf-8")):
            logger.error(f"Credential check for {identity!r} failed")
            return Response.INVALID_CREDENTIALS

        logger.info(f"{identity!r} successfully authenticated")
        return Response.SUCCESS

"""
LDAP credential verifier.

A fresh connection is opened for every verification and always unbound
before returning.
"""

import logging
from typing import Optional

from ldap3 import SIMPLE, Connection, Server
from ldap3.core.exceptions import LDAPException

from ..api.models import Response

logger = logging.getLogger(__name__)


class LDAPVerifier:
    """Verifies credentials with an LDAPv3 simple bind."""

    def __init__(self, uri: str, timeout: Optional[float] = 5.0):
        """
        Initialize LDAP verifier.

        Args:
            uri: LDAP server URI (ldap:// or ldaps://)
            timeout: Connect and receive timeout in seconds
        """
        self.uri = uri
        self.timeout = timeout

    def verify(self, identity: str, password: str) -> Response:
        logger.info(f"Trying to authenticate as {identity!r}")

        # An empty password would be an anonymous bind
        if not password:
            logger.error(f"Credential check for {identity!r} failed: empty password")
            return Response.INVALID_CREDENTIALS

        try:
            server = Server(self.uri, connect_timeout=self.timeout)
            connection = Connection(
                server,
                user=identity,
                password=password,
                authentication=SIMPLE,
                version=3,
                receive_timeout=self.timeout,
                raise_exceptions=False,
            )
        except LDAPException as e:
            logger.error(f"LDAP initialize error: {e}")
            return Response.SERVICE_INIT_ERROR

        try:
            connection.open()
            if not connection.bind():
                description = connection.result.get("description") if connection.result else None
                logger.error(f"Credential check for {identity!r} failed: {description}")
                return Response.INVALID_CREDENTIALS
        except LDAPException as e:
            logger.error(f"LDAP connection to {self.uri} failed: {e}")
            return Response.SERVICE_INIT_ERROR
        finally:
            self._release(connection)

        logger.info(f"{identity!r} successfully authenticated")
        return Response.SUCCESS

    def _release(self, connection: Connection) -> None:
        try:
            connection.unbind()
        except LDAPException as e:
            logger.warning(f"LDAP unbind failed: {e}")

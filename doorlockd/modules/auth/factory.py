"""
Authentication Factory following Black Box Design principles.

This factory:
- Constructs the credential verifier based on configuration
- Returns only the verifier interface
"""

import logging

from .interfaces import CredentialVerifier
from .ldap import LDAPVerifier
from .static import StaticCredentialVerifier

logger = logging.getLogger(__name__)


class AuthFactory:
    """Composition root for credential verification."""

    @staticmethod
    def build(ldap_config) -> CredentialVerifier:
        """
        Build the credential verifier.

        Args:
            ldap_config: LDAPConfig

        Returns:
            LDAPVerifier if an LDAP URI is configured, otherwise a
            StaticCredentialVerifier over the configured users
        """
        if ldap_config.uri:
            logger.info(f"Building LDAP credential verifier for {ldap_config.uri}")
            return LDAPVerifier(ldap_config.uri, timeout=ldap_config.timeout)

        if not ldap_config.static_users:
            raise ValueError(
                "No credential backend configured. Set DOORLOCKD_LDAP_URI "
                "or DOORLOCKD_STATIC_USERS (format: user:password,user:password)."
            )

        logger.warning("No LDAP URI configured, using static credentials")
        return StaticCredentialVerifier(ldap_config.static_users)

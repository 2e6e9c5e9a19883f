"""
Authentication Module - Black Box Interface

Purpose: Verify username/password pairs against a directory service
Interface: verify(), IdentityTemplate.render(), AuthFactory.build()
Hidden: LDAP connection handling, bind semantics

This module can be replaced with any other credential backend without
affecting the logic module.
"""

from .factory import AuthFactory
from .interfaces import CredentialVerifier, IdentityTemplate
from .ldap import LDAPVerifier
from .static import StaticCredentialVerifier

__all__ = [
    "AuthFactory",
    "CredentialVerifier",
    "IdentityTemplate",
    "LDAPVerifier",
    "StaticCredentialVerifier",
]

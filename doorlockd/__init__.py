"""
doorlockd - Door Access-Control Daemon

Authorizes lock/unlock actions on a physical door by checking a
directory-service credential and a short-lived rotating token.

Architecture:
- Each module is self-contained with clear interfaces
- Collaborators (door, credential service, token display) are replaceable
- The logic module owns all shared state behind a single lock

Modules:
- api: Request/response models
- auth: Credential verification (LDAP)
- door: Door state machine and actuator adapters
- token: Rotating token lifecycle
- notify: Publishing new tokens for display
- logic: Request validation pipeline
"""

__version__ = "1.0.0"

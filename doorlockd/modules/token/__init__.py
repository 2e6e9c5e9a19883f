"""
Token Module - Black Box Interface

Purpose: Rotating token lifecycle
Interface: generate_and_rotate(), is_valid(), start(), stop(), notify_rotated()
Hidden: Random source, grace-period bookkeeping, rotation thread

The owner supplies the lock that guards the token pair.
"""

from .manager import InvalidTokenFormat, TokenManager, format_token, parse_token

__all__ = ["InvalidTokenFormat", "TokenManager", "format_token", "parse_token"]

"""
Logic Module - Black Box Interface

Purpose: Authorize door actions
Interface: parse_request(), start(), shutdown()
Hidden: Validation order, token rotation policy, locking discipline

Owns the token pair and the door behind a single lock.
"""

from .logic import Logic

__all__ = ["Logic"]

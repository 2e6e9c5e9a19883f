"""
API Module - Black Box Interface

Purpose: Shape of the data crossing the transport boundary
Interface: DoorRequest, ActionResponse, Response
Hidden: Field validation rules

The transport only orchestrates - it contains no business logic.
"""

from .models import ActionResponse, DoorRequest, Response

__all__ = ["ActionResponse", "DoorRequest", "Response"]

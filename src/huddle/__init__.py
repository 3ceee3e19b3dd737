"""Huddle real-time chat and signaling server."""

__version__ = "0.1.0"

"""Stateful services built on the core plugin operations."""

from .editing_session import EditingSession

__all__ = ["EditingSession"]

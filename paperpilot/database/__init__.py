"""Persistence layer."""

from paperpilot.database.repository import StateRepository

__all__ = ["StateRepository"]

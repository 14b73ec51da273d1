"""Collaborative music queue with moderation and playback-source reconciliation."""

__version__ = "0.1.0"

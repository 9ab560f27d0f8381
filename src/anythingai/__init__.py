"""Anything AI: chat backend with a queued SSE relay to a hosted model."""

__version__ = "0.4.0"

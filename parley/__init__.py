"""Parley: session-scoped chat front-end for LLM completion providers."""

__version__ = "0.1.0"

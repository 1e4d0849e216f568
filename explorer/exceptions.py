"""Errors raised at the edges of the market explorer."""
from __future__ import annotations


class ExplorerError(RuntimeError):
    """Base error for the market data explorer."""


class DatasetLoadError(ExplorerError):
    """Raised when the market dataset file cannot be read or decoded."""


class InvalidEventError(ExplorerError, ValueError):
    """Raised when a client payload does not describe a known selection event."""

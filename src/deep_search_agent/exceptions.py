"""Exception hierarchy for the deep search agent.

Every error raised on purpose by this package derives from
:class:`DeepSearchError`, so a front end can catch all of them with a
single ``except`` clause while still telling the categories apart.
"""

from __future__ import annotations


class DeepSearchError(Exception):
    """Base exception for all deep search agent errors."""


class ConfigurationError(DeepSearchError):
    """Raised when a required setting is missing or has an invalid value."""


class ActionDecodeError(DeepSearchError):
    """Raised when the model's action payload does not match the action schema.

    Examples:
        - ``type`` outside of ``search`` / ``crawl`` / ``answer``
        - a ``search`` action without a query
        - a ``crawl`` action with an empty URL list
    """

    def __init__(self, message: str, payload: object | None = None) -> None:
        super().__init__(message)
        self.payload = payload


class ProviderError(DeepSearchError):
    """Raised when an external provider call fails after all retries."""


class SearchProviderError(ProviderError):
    """Raised when the search or crawl provider fails."""


class PersistenceError(DeepSearchError):
    """Raised when the message store cannot read or write messages."""

"""Exception hierarchy shared by the catalog client, provider and pipeline."""

from __future__ import annotations


class ReelPickError(Exception):
    """Base exception for recommendation failures."""


class UpstreamError(ReelPickError):
    """Raised on network errors, timeouts or 5xx responses from TMDb or the model."""


class NotFound(ReelPickError):
    """Raised when TMDb has no entry for the requested id."""


class MalformedResponse(ReelPickError):
    """Raised when the model reply cannot be parsed into candidates."""


class InvalidInput(ReelPickError):
    """Raised before any external call when the request cannot be served."""

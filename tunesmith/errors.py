from __future__ import annotations


class TunesmithError(Exception):
    """Base error for the tunesmith library."""


class InvalidConfigError(TunesmithError):
    """Raised when settings or inputs cannot be parsed or clamped."""


class RenderFailedError(TunesmithError):
    """Raised when the synthesis backend fails while rendering a piece."""


class RenderCancelledError(TunesmithError):
    """Raised inside the renderer when an in-flight render is stopped."""

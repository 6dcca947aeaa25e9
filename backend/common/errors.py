from __future__ import annotations


class TileBlendError(Exception):
    """
    Base class for every error raised by this package.
    """


class InvalidFilterArgs(TileBlendError, ValueError):
    """Malformed or missing widget filter parameters."""


class UnknownLayer(TileBlendError, LookupError):
    """A layer index (or layer selector) does not resolve to a configured layer."""


class UnknownWidget(TileBlendError, LookupError):
    """A widget id is not defined on the referenced layer."""


class InvalidMapConfig(TileBlendError, ValueError):
    pass


class InvalidTileCoordinate(TileBlendError, ValueError):
    pass


class NoRenderableLayers(TileBlendError, RuntimeError):
    def __init__(self, message: str = "No renderers") -> None:
        super().__init__(message)


class UpstreamQueryError(TileBlendError, RuntimeError):
    """
    The query execution collaborator failed.

    The message carries a component prefix (e.g. ``TorqueRenderer: ...``); the original
    exception is kept as ``__cause__``.
    """


class UpstreamRenderError(TileBlendError, RuntimeError):
    """A per-layer renderer provider failed to produce a renderer."""

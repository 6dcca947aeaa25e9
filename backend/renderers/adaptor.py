from __future__ import annotations

from typing import Any

from common.logging import get_logger
from renderers.policies import TileErrorPolicy
from renderers.types import RenderResult, TileRenderer

log = get_logger(__name__)


class PolicyAdaptor:
    """
    Wraps a layer renderer so tile errors go through its failure-substitution policy.
    """

    def __init__(self, renderer: TileRenderer, policy: TileErrorPolicy, *, layer: Any = None):
        self.renderer = renderer
        self.policy = policy
        self.layer = layer

    async def get_tile(self, z: int, x: int, y: int) -> RenderResult:
        try:
            return await self.renderer.get_tile(z, x, y)
        except Exception as err:
            result = self.policy.handle(err, getattr(err, "stats", None))
            log.warning(
                "tile_error_substituted",
                policy=self.policy.name,
                layer=self.layer,
                tile=f"{z}/{x}/{y}",
                error=str(err),
            )
            return result

    async def get_metadata(self) -> Any:
        fn = getattr(self.renderer, "get_metadata", None)
        if fn is None:
            return None
        return await fn()

    async def close(self) -> None:
        fn = getattr(self.renderer, "close", None)
        if fn is not None:
            await fn()

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, Sequence, Union

if TYPE_CHECKING:
    from mapconfig.model import MapConfig


TileBody = Union[bytes, list[dict[str, Any]]]


@dataclass(frozen=True)
class RenderResult:
    """
    What a renderer returns for a single tile.

    `body` is image bytes for raster renderers or rows for aggregation (torque) tiles.
    """

    body: TileBody
    headers: dict[str, str] = field(default_factory=dict)
    stats: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryResult:
    rows: list[dict[str, Any]]


class TileRenderer(Protocol):
    async def get_tile(self, z: int, x: int, y: int) -> RenderResult: ...


class RendererProvider(Protocol):
    """
    Builds a concrete renderer for one layer (or a merged set of same-engine layers).

    `params` carries request parameters plus `layer`; `options` carries `limits` and the
    `on_tile_error` policy the renderer should honour.
    """

    async def get_renderer(
        self,
        map_config: "MapConfig",
        params: dict[str, Any],
        options: dict[str, Any],
    ) -> TileRenderer: ...


class QueryExecutor(Protocol):
    async def execute(self, query: str) -> QueryResult: ...


class TileCompositor(Protocol):
    """
    Merges same-sized encoded images, bottom layer first.
    """

    def composite(self, buffers: Sequence[bytes]) -> bytes: ...

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from common import config
from common.errors import UpstreamQueryError
from common.logging import get_logger
from geo.tiles import TileCoordinate, TileGeometry, compute_geometry
from mapconfig.types import LayerSpec
from renderers.tokens import format_template, replace_substitution_tokens
from renderers.torque.sql import (
    BBOX_SQL,
    DEFAULT_TILE_SQL,
    EPOCH_COLUMN_SQL,
    STANDARD_PIXEL_SIZE,
    STEP_FILTER_SQL,
)
from renderers.types import QueryExecutor, RenderResult

log = get_logger(__name__)


class TorqueAttributes(BaseModel):
    """
    Aggregation attributes of a torque layer.

    Field names follow the template tokens they feed ({start}, {step}, {stepSelect}...).
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    column: str
    countby: str = "count(cartodb_id)"
    resolution: float = Field(default=1.0, gt=0)
    start: float = 0
    end: float = 0
    step: float = Field(default=1.0, gt=0)
    steps: int = 1
    data_steps: float = 0
    is_time: bool = False
    step_select: int | None = Field(default=None, alias="stepSelect")
    step_offset: int = Field(default=1, alias="stepOffset")

    def tokens(self) -> dict[str, Any]:
        values = self.model_dump(by_alias=True)
        values.pop("is_time", None)
        return values


@dataclass(frozen=True)
class TorqueOptions:
    tile_size: int = 256
    max_geosize: float = 40075017.0
    buffer_size: int = 0
    tile_sql: str | None = None

    @classmethod
    def from_env(cls, **overrides: Any) -> "TorqueOptions":
        values: dict[str, Any] = {
            "tile_size": config.tile_size(),
            "max_geosize": config.max_geosize(),
            "buffer_size": config.buffer_size(),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def column_expression(attrs: TorqueAttributes) -> str:
    if attrs.is_time:
        return format_template(EPOCH_COLUMN_SQL, {"column": attrs.column})
    return attrs.column


def step_filter(attrs: TorqueAttributes, column_conv: str) -> str:
    if attrs.step_select is None:
        return ""
    return format_template(STEP_FILTER_SQL, attrs.tokens(), {"column_conv": column_conv})


class TorqueRenderer:
    """
    Renders time-bucketed aggregation tiles as rows (not images).

    Each tile runs one query built from the layer SQL and the tile template; results are
    not cached and failures are not retried.
    """

    def __init__(
        self,
        layer: LayerSpec,
        executor: QueryExecutor,
        attrs: TorqueAttributes | dict[str, Any],
        options: TorqueOptions | None = None,
    ):
        self.layer = layer
        self.executor = executor
        self.attrs = attrs if isinstance(attrs, TorqueAttributes) else TorqueAttributes.model_validate(attrs)
        self.options = options or TorqueOptions()
        self.tile_sql = self.options.tile_sql or DEFAULT_TILE_SQL

    @property
    def geom_column(self) -> str:
        return self.layer.options.geom_column or "the_geom_webmercator"

    @property
    def srid(self) -> int:
        return int(self.layer.options.srid or 3857)

    def geometry(self, coord: TileCoordinate) -> TileGeometry:
        return compute_geometry(
            coord,
            tile_size=self.options.tile_size,
            max_geosize=self.options.max_geosize,
            buffer_size=self.options.buffer_size,
            resolution_factor=self.attrs.resolution,
        )

    def layer_sql(self, geom: TileGeometry) -> str:
        extent = geom.extent()
        return replace_substitution_tokens(
            self.layer.options.sql or "",
            {
                "bbox": format_template(BBOX_SQL, extent, {"srid": self.srid}),
                "scale_denominator": geom.resolution / STANDARD_PIXEL_SIZE,
                "pixel_width": geom.resolution,
                "pixel_height": geom.resolution,
            },
        )

    def build_query(self, coord: TileCoordinate) -> str:
        geom = self.geometry(coord)
        column_conv = column_expression(self.attrs)
        return format_template(
            self.tile_sql,
            self.attrs.tokens(),
            {
                "zoom": coord.z,
                "x": coord.x,
                "y": coord.y,
                "column_conv": column_conv,
                "xyz_resolution": geom.resolution,
                "srid": self.srid,
                "gcol": self.geom_column,
            },
            geom.extent(),
            {
                "_sql": self.layer_sql(geom),
                "_stepFilter": step_filter(self.attrs, column_conv),
            },
        )

    async def get_tile(self, z: int, x: int, y: int) -> RenderResult:
        coord = TileCoordinate.of(z, x, y)
        query = self.build_query(coord)

        t0 = time.perf_counter()
        try:
            result = await self.executor.execute(query)
        except Exception as err:
            log.debug("torque_query_failed", query=query, error=str(err))
            raise UpstreamQueryError(f"TorqueRenderer: {err}") from err
        query_ms = (time.perf_counter() - t0) * 1000.0

        return RenderResult(
            body=list(result.rows),
            headers={"Content-Type": "application/json"},
            stats={
                "query": round(query_ms, 2),
                "bbox": self.geometry(coord).lonlat_bbox().as_dict(),
            },
        )

    async def get_metadata(self) -> dict[str, Any]:
        a = self.attrs
        return {
            "start": a.start * 1000,
            "end": a.end * 1000,
            "steps": int(a.steps),
            "data_steps": int(a.data_steps),
            "column_type": "date" if a.is_time else "number",
        }

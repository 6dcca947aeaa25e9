from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pyproj import Transformer

from common.errors import InvalidTileCoordinate
from geo.aoi import BBox


# Half the EPSG:3857 world width in meters.
MERCATOR_HALF_EXTENT = 20037508.342789244


@lru_cache(maxsize=1)
def transformer_3857_to_4326() -> Transformer:
    return Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)


def _clamp_mercator(v: float) -> float:
    return max(-MERCATOR_HALF_EXTENT, min(MERCATOR_HALF_EXTENT, float(v)))


@dataclass(frozen=True)
class TileCoordinate:
    """
    Slippy tile address (z/x/y), y counted from the top of the map.
    """

    z: int
    x: int
    y: int

    @classmethod
    def of(cls, z, x, y) -> "TileCoordinate":
        try:
            coord = cls(z=int(z), x=int(x), y=int(y))
        except (TypeError, ValueError) as e:
            raise InvalidTileCoordinate(f"Invalid tile coordinate: {z}/{x}/{y}") from e
        coord.validate()
        return coord

    def validate(self) -> None:
        if self.z < 0:
            raise InvalidTileCoordinate(f"Invalid zoom level: {self.z}")
        n = 2**self.z
        if not (0 <= self.x < n and 0 <= self.y < n):
            raise InvalidTileCoordinate(
                f"Tile coordinates out of range: {self.z}/{self.x}/{self.y}"
            )


@dataclass(frozen=True)
class TileGeometry:
    """
    Projected extent of a single tile.

    Tile space is y-reversed: `ymin` is the *top* edge, so `ymin > ymax`. The buffered
    box grows outward on x and, following the same convention, b_ymin/b_ymax move away
    from the tile on y.
    """

    xmin: float
    ymin: float
    xmax: float
    ymax: float
    b_xmin: float
    b_ymin: float
    b_xmax: float
    b_ymax: float
    # Map units per pixel at this zoom.
    resolution: float
    # Pixel buffer expressed in aggregation cells.
    b_size: float

    def extent(self) -> dict[str, float]:
        return {
            "xmin": self.xmin,
            "ymin": self.ymin,
            "xmax": self.xmax,
            "ymax": self.ymax,
            "b_xmin": self.b_xmin,
            "b_ymin": self.b_ymin,
            "b_xmax": self.b_xmax,
            "b_ymax": self.b_ymax,
            "b_size": self.b_size,
        }

    def lonlat_bbox(self) -> BBox:
        """
        Unbuffered extent in EPSG:4326. Only meaningful for web-mercator tiling.
        """
        t = transformer_3857_to_4326()
        # Tile math uses a rounded earth circumference; edges past the projection limit
        # would wrap to the opposite meridian.
        lon0, lat0 = t.transform(_clamp_mercator(self.xmin), _clamp_mercator(self.ymin))
        lon1, lat1 = t.transform(_clamp_mercator(self.xmax), _clamp_mercator(self.ymax))
        return BBox(min_lon=lon0, min_lat=lat0, max_lon=lon1, max_lat=lat1).normalized()


def tile_resolution(zoom: int, *, tile_size: int, max_geosize: float) -> float:
    full_resolution = float(max_geosize) / float(tile_size)
    return full_resolution / float(2 ** int(zoom))


def compute_geometry(
    coord: TileCoordinate,
    *,
    tile_size: int,
    max_geosize: float,
    buffer_size: int = 0,
    resolution_factor: float = 1.0,
) -> TileGeometry:
    initial_resolution = tile_resolution(0, tile_size=tile_size, max_geosize=max_geosize)
    origin_shift = (initial_resolution * tile_size) / 2.0

    pixres = tile_resolution(coord.z, tile_size=tile_size, max_geosize=max_geosize)
    tile_geo_size = tile_size * pixres

    buffer = buffer_size / 2
    geo_buffer = pixres * buffer

    xmin = -origin_shift + coord.x * tile_geo_size
    xmax = -origin_shift + (coord.x + 1) * tile_geo_size
    ymin = origin_shift - coord.y * tile_geo_size
    ymax = origin_shift - (coord.y + 1) * tile_geo_size

    return TileGeometry(
        xmin=xmin,
        ymin=ymin,
        xmax=xmax,
        ymax=ymax,
        b_xmin=xmin - geo_buffer,
        b_ymin=ymin + geo_buffer,
        b_xmax=xmax + geo_buffer,
        b_ymax=ymax - geo_buffer,
        resolution=pixres,
        b_size=buffer / float(resolution_factor),
    )

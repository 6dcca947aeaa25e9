from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BBox:
    """
    WGS84 bounding box in lon/lat degrees (minLon, minLat, maxLon, maxLat).

    Used for reporting where a projected tile lands on the globe; tile math itself stays
    in projected units (see `geo.tiles`).
    """

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    def normalized(self) -> "BBox":
        return BBox(
            min_lon=min(self.min_lon, self.max_lon),
            min_lat=min(self.min_lat, self.max_lat),
            max_lon=max(self.min_lon, self.max_lon),
            max_lat=max(self.min_lat, self.max_lat),
        )

    def as_dict(self, decimals: int = 6) -> dict[str, float]:
        b = self.normalized()
        return {
            "minLon": round(b.min_lon, decimals),
            "minLat": round(b.min_lat, decimals),
            "maxLon": round(b.max_lon, decimals),
            "maxLat": round(b.max_lat, decimals),
        }

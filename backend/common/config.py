from __future__ import annotations

import os


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = (os.getenv(name) or "").strip()
    if raw:
        try:
            return max(minimum, int(raw))
        except ValueError:
            pass
    return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if raw:
        try:
            v = float(raw)
        except ValueError:
            return default
        if v > 0:
            return v
    return default


def tile_size() -> int:
    return _env_int("TILER_TILE_SIZE", 256, minimum=1)


def max_geosize() -> float:
    # Earth circumference in EPSG:3857 meters.
    return _env_float("TILER_MAX_GEOSIZE", 40075017.0)


def buffer_size() -> int:
    return _env_int("TILER_BUFFER_SIZE", 0)


def duckdb_threads() -> int:
    return _env_int("TILER_DUCKDB_THREADS", max(1, int(os.cpu_count() or 1)), minimum=1)


def log_level() -> str:
    return (os.getenv("TILER_LOG_LEVEL") or "INFO").strip().upper() or "INFO"


def log_format() -> str:
    # "json" for machine-readable lines, "console" for local development.
    v = (os.getenv("TILER_LOG_FORMAT") or "json").strip().lower()
    return v if v in {"json", "console"} else "json"

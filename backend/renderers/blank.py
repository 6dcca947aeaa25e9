from __future__ import annotations

import struct
import zlib
from functools import lru_cache

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _chunk(kind: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(kind + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", crc)


@lru_cache(maxsize=4)
def blank_png(width: int = 256, height: int = 256) -> bytes:
    """
    Fully transparent RGBA PNG, used when a layer failure is swapped for an empty tile.
    """
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0)
    # Each scanline: filter byte 0 followed by transparent RGBA pixels.
    raw = (b"\x00" + b"\x00" * (width * 4)) * height
    return (
        _PNG_SIGNATURE
        + _chunk(b"IHDR", ihdr)
        + _chunk(b"IDAT", zlib.compress(raw, 9))
        + _chunk(b"IEND", b"")
    )


EMPTY_IMAGE_BUFFER = blank_png(256, 256)

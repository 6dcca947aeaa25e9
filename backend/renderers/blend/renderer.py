from __future__ import annotations

import asyncio
import time
from typing import Any, Sequence

from renderers.types import RenderResult, TileCompositor, TileRenderer


class CompositeRenderer:
    """
    Renders every layer concurrently and composites the images in layer order.

    Every layer is allowed to settle; then any failing layer fails the whole tile with
    the first error in layer order (policy substitutions have already happened in the
    per-layer adaptors by the time an error reaches here).
    """

    def __init__(self, renderers: Sequence[TileRenderer], compositor: TileCompositor):
        self.renderers = list(renderers)
        self.compositor = compositor

    async def get_tile(self, z: int, x: int, y: int) -> RenderResult:
        t0 = time.perf_counter()
        # gather keeps input order regardless of completion order.
        settled = await asyncio.gather(
            *(r.get_tile(z, x, y) for r in self.renderers), return_exceptions=True
        )
        for outcome in settled:
            if isinstance(outcome, BaseException):
                raise outcome
        results: list[RenderResult] = list(settled)

        buffers = [bytes(r.body) for r in results if isinstance(r.body, (bytes, bytearray)) and r.body]
        body = self.compositor.composite(buffers)

        headers: dict[str, str] = {}
        for r in results:
            headers.update(r.headers)
        headers["Content-Type"] = "image/png"

        return RenderResult(
            body=body,
            headers=headers,
            stats={
                "layers": [dict(r.stats) for r in results],
                "renderMs": round((time.perf_counter() - t0) * 1000.0, 2),
            },
        )

    async def get_metadata(self) -> list[Any]:
        out: list[Any] = []
        for r in self.renderers:
            fn = getattr(r, "get_metadata", None)
            out.append(await fn() if fn is not None else None)
        return out

    async def close(self) -> None:
        for r in self.renderers:
            fn = getattr(r, "close", None)
            if fn is not None:
                await fn()

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Callable

from mapconfig.types import LayerType
from renderers.blank import EMPTY_IMAGE_BUFFER
from renderers.types import RenderResult

_OUT_OF_RANGE = re.compile(r"coordinates out of range", re.IGNORECASE)


def is_timeout_error(err: BaseException) -> bool:
    if isinstance(err, (TimeoutError, asyncio.TimeoutError)):
        return True
    return getattr(err, "code", None) == "ETIMEDOUT"


def substitute_unless_timeout(err: BaseException) -> bool:
    # Remote basemaps fail often (404s, bad tiles); only timeouts are worth surfacing.
    return not is_timeout_error(err)


def substitute_out_of_range(err: BaseException) -> bool:
    return bool(_OUT_OF_RANGE.search(str(err) or ""))


@dataclass(frozen=True)
class TileErrorPolicy:
    """
    Decides whether a failed layer render becomes a blank tile or fails the request.
    """

    name: str
    should_substitute: Callable[[BaseException], bool]

    def handle(self, err: BaseException, stats: dict[str, Any] | None = None) -> RenderResult:
        """
        Return the blank-tile substitute or re-raise `err`.
        """
        if not self.should_substitute(err):
            raise err
        return blank_result(stats)


def blank_result(stats: dict[str, Any] | None = None) -> RenderResult:
    return RenderResult(
        body=EMPTY_IMAGE_BUFFER,
        headers={"Content-Type": "image/png"},
        stats=dict(stats or {}),
    )


HTTP_POLICY = TileErrorPolicy(name="http", should_substitute=substitute_unless_timeout)
DEFAULT_POLICY = TileErrorPolicy(name="default", should_substitute=substitute_out_of_range)

_POLICY_BY_LAYER_TYPE: dict[LayerType, TileErrorPolicy] = {
    LayerType.http: HTTP_POLICY,
}


def policy_for(layer_type: LayerType) -> TileErrorPolicy:
    return _POLICY_BY_LAYER_TYPE.get(layer_type, DEFAULT_POLICY)

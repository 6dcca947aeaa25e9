from __future__ import annotations

from typing import TYPE_CHECKING

from common.errors import UnknownLayer
from mapconfig.types import LayerType

if TYPE_CHECKING:
    from mapconfig.model import MapConfig


def filter_layers(map_config: "MapConfig", selector: int | str | None = None) -> list[int]:
    """
    Resolve a layer selector to an ordered list of layer indices.

    Accepted selectors:
      - None / "all": every layer
      - a layer type name ("mapnik", "torque", ...): layers drawn by that renderer
      - an int, or a comma separated list of ascending indices ("0,2,3")
    """
    n = len(map_config.get_layers())
    all_indices = list(range(n))

    if selector is None:
        return all_indices
    if isinstance(selector, bool):
        raise UnknownLayer(f"Invalid layer filtering: {selector!r}")
    if isinstance(selector, int):
        if not 0 <= selector < n:
            raise UnknownLayer(f"Layer {selector} not found")
        return [selector]

    raw = str(selector).strip()
    if raw in {"", "all"}:
        return all_indices

    try:
        wanted = LayerType(raw).renderer_type
    except ValueError:
        wanted = None
    if wanted is not None:
        return [i for i in all_indices if map_config.layer_type(i) is wanted]

    try:
        indices = [int(part) for part in raw.split(",")]
    except ValueError as e:
        raise UnknownLayer(f"Invalid layer filtering: {raw}") from e
    for prev, cur in zip(indices, indices[1:]):
        if cur <= prev:
            raise UnknownLayer(f"Invalid layer filtering: {raw}")
    for i in indices:
        if not 0 <= i < n:
            raise UnknownLayer(f"Invalid layer filtering: {raw}")
    return indices

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping

from pydantic import ValidationError

from common.errors import InvalidMapConfig, UnknownLayer, UnknownWidget
from common.logging import get_logger
from mapconfig.filters import Filter, LayerFilters, build_filter
from mapconfig.types import LayerSpec, LayerType, MapConfigSpec
from mapconfig.widgets import Widget

log = get_logger(__name__)


class MapConfig:
    """
    A validated map configuration plus request-scoped widget filters.

    The pristine spec is never mutated. Filters produce a rewritten copy whose layer SQL
    wraps the original; `id()` hashes whichever copy is current, so clearing filters
    gives back the exact original identity.

    Not safe for concurrent filter mutation; callers serialize `set_filters_params` /
    `clear_filters` per instance.
    """

    def __init__(self, spec: MapConfigSpec):
        self._pristine = spec
        self._current = spec
        self._filters: dict[int, LayerFilters] = {}
        self._id: str | None = None

    @classmethod
    def create(cls, raw: MapConfigSpec | Mapping[str, Any]) -> "MapConfig":
        if isinstance(raw, MapConfigSpec):
            return cls(raw)
        try:
            spec = MapConfigSpec.model_validate(dict(raw))
        except ValidationError as e:
            raise InvalidMapConfig(str(e)) from e
        return cls(spec)

    # identity

    def to_dict(self) -> dict[str, Any]:
        return self._current.model_dump(mode="json", exclude_none=True)

    def id(self) -> str:
        if self._id is None:
            canonical = json.dumps(
                self.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False
            )
            self._id = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
        return self._id

    # layers

    def get_layers(self) -> list[LayerSpec]:
        return list(self._current.layers)

    def get_layer(self, index: int) -> LayerSpec:
        layers = self._current.layers
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(layers):
            raise UnknownLayer(f"Layer {index} not found")
        return layers[index]

    def layer_type(self, index: int) -> LayerType:
        return self.get_layer(index).type.renderer_type

    def get_widget(self, layer_index: int, widget_id: str) -> Widget:
        original = self._pristine_layer(layer_index)
        spec = original.options.widgets.get(widget_id)
        if spec is None:
            raise UnknownWidget(f"Widget '{widget_id}' not found at layer {layer_index}")
        return Widget(
            id=widget_id,
            layer_index=layer_index,
            spec=spec,
            layer_sql=original.options.sql or "",
        )

    def _pristine_layer(self, index: int) -> LayerSpec:
        self.get_layer(index)
        return self._pristine.layers[index]

    # filters

    def set_filters_params(self, params: Mapping[str, Any] | Mapping[int, Any]) -> None:
        """
        Apply widget filters, replacing any previous filter state.

        Accepts `{"layers": [{widget_id: args}, ...]}` (list position is the layer
        index) or `{layer_index: {widget_id: args}}`. Every filter is validated before
        anything changes; on error the previous state is kept.
        """
        staged: dict[int, LayerFilters] = {}
        for layer_index, widget_args in _iter_layer_params(params):
            layer = self._pristine_layer(layer_index)
            if not widget_args:
                continue
            built: list[tuple[str, Filter]] = []
            for widget_id, args in widget_args.items():
                widget = layer.options.widgets.get(widget_id)
                if widget is None:
                    raise UnknownWidget(
                        f"Widget '{widget_id}' not found at layer {layer_index}"
                    )
                built.append((widget_id, build_filter(widget_id, widget, args)))
            if built:
                staged[layer_index] = LayerFilters(layer_index=layer_index, filters=tuple(built))

        self._filters = staged
        self._current = self._rewrite(staged)
        self._id = None
        log.debug(
            "filters_applied",
            layers=sorted(staged.keys()),
            widgets=sum(len(f) for f in staged.values()),
        )

    def get_layer_filters(self, layer_index: int) -> LayerFilters:
        self.get_layer(layer_index)
        return self._filters.get(layer_index) or LayerFilters(layer_index=layer_index)

    def clear_filters(self) -> None:
        self._filters = {}
        self._current = self._pristine
        self._id = None

    def _rewrite(self, staged: dict[int, LayerFilters]) -> MapConfigSpec:
        if not staged:
            return self._pristine
        layers: list[LayerSpec] = []
        for i, layer in enumerate(self._pristine.layers):
            lf = staged.get(i)
            if lf is None or not layer.options.sql:
                layers.append(layer)
                continue
            options = layer.options.model_copy(update={"sql": lf.apply(layer.options.sql)})
            layers.append(layer.model_copy(update={"options": options}))
        return self._pristine.model_copy(update={"layers": layers})


def _iter_layer_params(params: Any):
    if not isinstance(params, Mapping):
        raise TypeError("Filter params must be a mapping")
    if "layers" in params:
        layers = params.get("layers") or []
        if not isinstance(layers, (list, tuple)):
            raise TypeError("Filter params 'layers' must be a list")
        for i, widget_args in enumerate(layers):
            yield i, _as_widget_args(widget_args)
        return
    for key, widget_args in params.items():
        try:
            index = int(key)
        except (TypeError, ValueError) as e:
            raise UnknownLayer(f"Layer {key!r} not found") from e
        yield index, _as_widget_args(widget_args)


def _as_widget_args(widget_args: Any) -> dict[str, Any]:
    if widget_args is None:
        return {}
    if not isinstance(widget_args, Mapping):
        raise TypeError("Filter params per layer must map widget ids to filter args")
    return dict(widget_args)

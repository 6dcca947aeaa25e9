from __future__ import annotations

import asyncio
from typing import Any

from common.errors import NoRenderableLayers, TileBlendError, UpstreamRenderError
from common.logging import get_logger
from mapconfig.layer_filter import filter_layers
from mapconfig.model import MapConfig
from mapconfig.types import LayerType
from renderers.adaptor import PolicyAdaptor
from renderers.blend.renderer import CompositeRenderer
from renderers.policies import policy_for
from renderers.types import RendererProvider, TileCompositor

log = get_logger(__name__)

NAME = "blend"

# Layers drawn together by one shared engine pass.
PRIMARY_LAYER_TYPE = LayerType.mapnik


def primary_layers_param(map_config: MapConfig, layer_indices: list[int]) -> str:
    return ",".join(
        str(i) for i in layer_indices if map_config.layer_type(i) is PRIMARY_LAYER_TYPE
    )


class BlendFactory:
    """
    Builds a composite renderer out of per-layer renderers.

    All mapnik layers are requested once, as a single renderer for the merged layer
    list; the remaining mapnik indices resolve to no-ops so the shared engine does not
    draw the same composite twice.
    """

    def __init__(self, provider: RendererProvider, compositor: TileCompositor):
        self.provider = provider
        self.compositor = compositor

    def get_name(self) -> str:
        return NAME

    def supports_format(self, fmt: str) -> bool:
        return fmt == "png"

    async def dispatch(
        self,
        map_config: MapConfig,
        *,
        layer: int | str | None = None,
        params: dict[str, Any] | None = None,
        limits: dict[str, Any] | None = None,
    ) -> list[PolicyAdaptor | None]:
        """
        Request one renderer per selected layer, in layer order.

        Entries are None for layers covered by an earlier merged mapnik request, and for
        layers the provider had nothing to render for.
        """
        indices = filter_layers(map_config, layer)
        if not indices:
            raise NoRenderableLayers()

        pending: list[asyncio.Future | None] = []
        has_primary = False
        for layer_index in indices:
            layer_type = map_config.layer_type(layer_index)
            is_primary = layer_type is PRIMARY_LAYER_TYPE
            if is_primary and has_primary:
                pending.append(None)
                continue

            renderer_params = dict(params or {})
            renderer_params["layer"] = layer_index
            if is_primary:
                renderer_params["layer"] = primary_layers_param(map_config, indices)
                has_primary = True

            policy = policy_for(layer_type)
            renderer_options = {"limits": limits, "on_tile_error": policy}

            log.debug(
                "blend_dispatch",
                layer=renderer_params["layer"],
                layer_type=layer_type.value,
                policy=policy.name,
            )
            pending.append(
                asyncio.ensure_future(
                    self._request(map_config, renderer_params, renderer_options)
                )
            )

        futures = [f for f in pending if f is not None]
        try:
            await asyncio.gather(*futures)
        finally:
            for f in futures:
                if not f.done():
                    f.cancel()

        out: list[PolicyAdaptor | None] = []
        for layer_index, f in zip(indices, pending):
            renderer = f.result() if f is not None else None
            if renderer is None:
                out.append(None)
                continue
            policy = policy_for(map_config.layer_type(layer_index))
            out.append(PolicyAdaptor(renderer, policy, layer=layer_index))
        return out

    async def get_renderer(
        self,
        map_config: MapConfig,
        *,
        layer: int | str | None = None,
        params: dict[str, Any] | None = None,
        limits: dict[str, Any] | None = None,
    ) -> CompositeRenderer:
        dispatched = await self.dispatch(map_config, layer=layer, params=params, limits=limits)
        renderers = [r for r in dispatched if r is not None]
        if not renderers:
            raise NoRenderableLayers()
        return CompositeRenderer(renderers, self.compositor)

    async def _request(
        self,
        map_config: MapConfig,
        params: dict[str, Any],
        options: dict[str, Any],
    ):
        try:
            return await self.provider.get_renderer(map_config, params, options)
        except TileBlendError:
            raise
        except Exception as err:
            raise UpstreamRenderError(str(err)) from err

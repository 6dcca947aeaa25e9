from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LayerType(str, Enum):
    mapnik = "mapnik"
    cartodb = "cartodb"
    torque = "torque"
    http = "http"
    plain = "plain"

    @property
    def renderer_type(self) -> "LayerType":
        # cartodb layers are drawn by the mapnik engine.
        if self is LayerType.cartodb:
            return LayerType.mapnik
        return self

    @property
    def is_sql_backed(self) -> bool:
        return self in {LayerType.mapnik, LayerType.cartodb, LayerType.torque}


class WidgetType(str, Enum):
    aggregation = "aggregation"
    histogram = "histogram"
    formula = "formula"
    list = "list"


class WidgetSpec(BaseModel):
    """
    A named statistics query attached to a layer.

    Options are free-form; each widget type reads what it needs
    (column, aggregation, aggregationColumn, bins, operation, columns).
    """

    model_config = ConfigDict(extra="allow")

    type: WidgetType
    options: dict[str, Any] = Field(default_factory=dict)


class LayerOptions(BaseModel):
    model_config = ConfigDict(extra="allow")

    sql: str | None = None
    cartocss: str | None = None
    cartocss_version: str | None = None
    geom_column: str | None = None
    srid: int | None = None
    widgets: dict[str, WidgetSpec] = Field(default_factory=dict)


class LayerSpec(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: LayerType = LayerType.mapnik
    id: str | None = None
    options: LayerOptions = Field(default_factory=LayerOptions)

    @model_validator(mode="after")
    def _require_sql(self) -> "LayerSpec":
        if self.type.is_sql_backed and not (self.options.sql or "").strip():
            raise ValueError(f"Layer of type '{self.type.value}' requires options.sql")
        return self


class MapConfigSpec(BaseModel):
    """
    Declarative map configuration: an ordered list of layers.

    Layer order is significant (draw order and filter parameter position).
    """

    model_config = ConfigDict(extra="allow")

    version: str = "1.0.1"
    layers: list[LayerSpec] = Field(min_length=1)

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from mapconfig.filters import LayerFilters
from mapconfig.types import WidgetSpec, WidgetType

_AGGREGATION_FUNCTIONS = {"count", "sum", "avg", "min", "max"}


@dataclass(frozen=True)
class Widget:
    """
    A widget bound to the *original* SQL of its layer.

    `sql()` never sees the layer's rewritten query; filters are re-applied from the
    filter state passed in, so the unfiltered query is always recoverable.
    """

    id: str
    layer_index: int
    spec: WidgetSpec
    layer_sql: str

    @property
    def type(self) -> WidgetType:
        return self.spec.type

    @property
    def options(self) -> dict[str, Any]:
        return self.spec.options

    def sql(self, filters: LayerFilters | None = None) -> str:
        base = self.layer_sql
        # Only filters for this widget's own layer apply.
        if filters and filters.layer_index == self.layer_index:
            base = filters.apply(base)
        builder = _SQL_BUILDERS[self.spec.type]
        return builder(self.options, base)


def _column(options: dict[str, Any], key: str = "column") -> str:
    col = options.get(key)
    if not isinstance(col, str) or not col.strip():
        raise ValueError(f"Widget option '{key}' is required")
    return col.strip()


def aggregation_sql(options: dict[str, Any], base_sql: str) -> str:
    column = _column(options)
    fn = str(options.get("aggregation") or "count").lower()
    if fn not in _AGGREGATION_FUNCTIONS:
        raise ValueError(f"Unsupported aggregation: {fn}")
    if fn == "count":
        value_expr = "count(*)"
    else:
        value_expr = f"{fn}({_column(options, 'aggregationColumn')})"
    return (
        f"SELECT {value_expr} AS {fn}, {column} FROM ({base_sql}) _cdb_aggregation"
        f" GROUP BY {column} ORDER BY {fn} DESC"
    )


def histogram_sql(options: dict[str, Any], base_sql: str) -> str:
    column = _column(options)
    bins = int(options.get("bins") or 10)
    if bins < 1:
        raise ValueError("Histogram needs at least one bin")
    width = f"NULLIF((_cdb_basics.max_val - _cdb_basics.min_val) / {bins}, 0)"
    return (
        "WITH _cdb_basics AS ("
        f"SELECT min({column}) AS min_val, max({column}) AS max_val"
        f" FROM ({base_sql}) _cdb_histogram_basics"
        ") "
        f"SELECT LEAST(CAST(COALESCE(floor(({column} - _cdb_basics.min_val) / {width}), 0) AS INTEGER), {bins - 1}) AS bin,"
        f" min({column}) AS min, max({column}) AS max, avg({column}) AS avg, count(*) AS freq"
        f" FROM ({base_sql}) _cdb_histogram, _cdb_basics"
        f" WHERE {column} IS NOT NULL"
        " GROUP BY bin ORDER BY bin"
    )


def formula_sql(options: dict[str, Any], base_sql: str) -> str:
    op = str(options.get("operation") or "count").lower()
    if op not in _AGGREGATION_FUNCTIONS:
        raise ValueError(f"Unsupported formula operation: {op}")
    value_expr = "count(*)" if op == "count" else f"{op}({_column(options)})"
    return f"SELECT {value_expr} AS result, count(*) AS count FROM ({base_sql}) _cdb_formula"


def list_sql(options: dict[str, Any], base_sql: str) -> str:
    columns = options.get("columns")
    if not isinstance(columns, list) or not columns:
        raise ValueError("List widget option 'columns' must be a non-empty list")
    cols = ", ".join(str(c) for c in columns)
    return f"SELECT {cols} FROM ({base_sql}) _cdb_list"


_SQL_BUILDERS = {
    WidgetType.aggregation: aggregation_sql,
    WidgetType.histogram: histogram_sql,
    WidgetType.formula: formula_sql,
    WidgetType.list: list_sql,
}

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Union

from common.errors import InvalidFilterArgs
from mapconfig.types import WidgetSpec, WidgetType

CATEGORY_FILTER_ALIAS = "_cdb_category_filter"
RANGE_FILTER_ALIAS = "_cdb_range_filter"


def quote_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "'true'" if value else "'false'"
    if isinstance(value, (int, float)):
        return _number(value)
    return "'" + str(value).replace("'", "''") + "'"


def _number(v: int | float) -> str:
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def _is_finite_number(v: Any) -> bool:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return False
    return math.isfinite(v)


@dataclass(frozen=True)
class CategoryFilter:
    column: str
    accept: tuple[Any, ...] | None = None
    reject: tuple[Any, ...] | None = None

    @classmethod
    def from_args(cls, column: str, args: Mapping[str, Any]) -> "CategoryFilter":
        accept = args.get("accept")
        reject = args.get("reject")
        if accept is None and reject is None:
            raise InvalidFilterArgs(
                "Category filter expects at least one array in accept or reject params"
            )
        for values in (accept, reject):
            if values is None:
                continue
            if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple, set, frozenset)):
                raise InvalidFilterArgs(
                    "Category filter expects at least one array in accept or reject params"
                )
            if len(values) == 0:
                raise InvalidFilterArgs(
                    "Category filter expects to have at least one value in accept or reject arrays"
                )
        return cls(
            column=column,
            accept=tuple(accept) if accept is not None else None,
            reject=tuple(reject) if reject is not None else None,
        )

    def where(self) -> str:
        conditions: list[str] = []
        if self.accept:
            vals = ",".join(quote_literal(v) for v in self.accept)
            conditions.append(f"{self.column} IN ({vals})")
        if self.reject:
            vals = ",".join(quote_literal(v) for v in self.reject)
            conditions.append(f"{self.column} NOT IN ({vals})")
        return "WHERE " + " AND ".join(conditions)

    def sql(self, base_sql: str) -> str:
        return f"SELECT * FROM ({base_sql}) {CATEGORY_FILTER_ALIAS} {self.where()}"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": "category", "column": self.column}
        if self.accept is not None:
            out["accept"] = list(self.accept)
        if self.reject is not None:
            out["reject"] = list(self.reject)
        return out


@dataclass(frozen=True)
class RangeFilter:
    column: str
    min: float | int | None = None
    max: float | int | None = None

    @classmethod
    def from_args(cls, column: str, args: Mapping[str, Any]) -> "RangeFilter":
        lo = args.get("min")
        hi = args.get("max")
        lo = lo if _is_finite_number(lo) else None
        hi = hi if _is_finite_number(hi) else None
        if lo is None and hi is None:
            raise InvalidFilterArgs(
                "Range filter expect to have at least one value in min or max numeric params"
            )
        return cls(column=column, min=lo, max=hi)

    def where(self) -> str:
        if self.min is not None and self.max is not None:
            return f"WHERE {self.column} BETWEEN {_number(self.min)} AND {_number(self.max)}"
        if self.min is not None:
            return f"WHERE {self.column} > {_number(self.min)}"
        return f"WHERE {self.column} < {_number(self.max)}"

    def sql(self, base_sql: str) -> str:
        return f"SELECT * FROM ({base_sql}) {RANGE_FILTER_ALIAS} {self.where()}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "range", "column": self.column, "min": self.min, "max": self.max}


Filter = Union[CategoryFilter, RangeFilter]

_FILTER_BY_WIDGET_TYPE = {
    WidgetType.aggregation: CategoryFilter,
    WidgetType.histogram: RangeFilter,
}


def build_filter(widget_id: str, widget: WidgetSpec, args: Any) -> Filter:
    """
    Validate filter arguments for a widget and build the matching filter.
    """
    filter_cls = _FILTER_BY_WIDGET_TYPE.get(widget.type)
    if filter_cls is None:
        raise InvalidFilterArgs(
            f"Widget '{widget_id}' of type '{widget.type.value}' does not support filters"
        )
    column = widget.options.get("column")
    if not isinstance(column, str) or not column.strip():
        raise InvalidFilterArgs(f"Widget '{widget_id}' has no column to filter by")
    if not isinstance(args, Mapping):
        args = {}
    return filter_cls.from_args(column.strip(), args)


@dataclass(frozen=True)
class LayerFilters:
    """
    Active filters for one layer, keyed by widget id, in application order.
    """

    layer_index: int
    filters: tuple[tuple[str, Filter], ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[tuple[str, Filter]]:
        return iter(self.filters)

    def __len__(self) -> int:
        return len(self.filters)

    def __bool__(self) -> bool:
        return bool(self.filters)

    def get(self, widget_id: str) -> Filter | None:
        for wid, f in self.filters:
            if wid == widget_id:
                return f
        return None

    def apply(self, base_sql: str) -> str:
        sql = base_sql
        for _wid, f in self.filters:
            sql = f.sql(sql)
        return sql

from __future__ import annotations

import asyncio

import pytest

from common.errors import InvalidFilterArgs, InvalidMapConfig
from mapconfig.model import MapConfig
from renderers.executors import DuckDBQueryExecutor


def _map_config(widgets: dict) -> MapConfig:
    return MapConfig.create(
        {"layers": [{"type": "mapnik", "options": {"sql": "select * from t", "widgets": widgets}}]}
    )


def test_sum_aggregation_uses_function_alias():
    mc = _map_config(
        {
            "pop_by_country": {
                "type": "aggregation",
                "options": {"column": "country", "aggregation": "sum", "aggregationColumn": "pop"},
            }
        }
    )
    assert mc.get_widget(0, "pop_by_country").sql() == (
        "SELECT sum(pop) AS sum, country FROM (select * from t) _cdb_aggregation"
        " GROUP BY country ORDER BY sum DESC"
    )


def test_formula_and_list_widgets():
    mc = _map_config(
        {
            "avg_pop": {"type": "formula", "options": {"column": "pop", "operation": "avg"}},
            "names": {"type": "list", "options": {"columns": ["name", "pop"]}},
        }
    )
    assert mc.get_widget(0, "avg_pop").sql() == (
        "SELECT avg(pop) AS result, count(*) AS count FROM (select * from t) _cdb_formula"
    )
    assert mc.get_widget(0, "names").sql() == "SELECT name, pop FROM (select * from t) _cdb_list"


def test_formula_widget_cannot_be_filtered():
    mc = _map_config({"n": {"type": "formula", "options": {"operation": "count"}}})
    with pytest.raises(InvalidFilterArgs):
        mc.set_filters_params({"layers": [{"n": {"accept": ["x"]}}]})


def test_widget_sql_is_built_from_original_layer_sql_even_when_filtered():
    mc = _map_config({"names": {"type": "list", "options": {"columns": ["name"]}}, "c": {"type": "aggregation", "options": {"column": "c"}}})
    mc.set_filters_params({"layers": [{"c": {"accept": ["a"]}}]})
    # Without passing filter state the widget ignores the rewritten layer SQL.
    assert mc.get_widget(0, "names").sql() == "SELECT name FROM (select * from t) _cdb_list"
    assert "_cdb_category_filter" in mc.get_widget(0, "names").sql(mc.get_layer_filters(0))


def test_sql_backed_layer_requires_sql():
    with pytest.raises(InvalidMapConfig):
        MapConfig.create({"layers": [{"type": "torque", "options": {}}]})
    # http layers carry no SQL.
    mc = MapConfig.create({"layers": [{"type": "http", "options": {"urlTemplate": "http://x/{z}/{x}/{y}.png"}}]})
    assert mc.get_layer(0).options.sql is None


def test_histogram_sql_runs_on_duckdb():
    mc = MapConfig.create(
        {
            "layers": [
                {
                    "type": "mapnik",
                    "options": {
                        "sql": "select * from range(0, 100) AS r(v)",
                        "widgets": {"v": {"type": "histogram", "options": {"column": "v", "bins": 4}}},
                    },
                }
            ]
        }
    )
    mc.set_filters_params({"layers": [{"v": {"min": 49}}]})
    sql = mc.get_widget(0, "v").sql(mc.get_layer_filters(0))

    rows = asyncio.run(DuckDBQueryExecutor(threads=1).execute(sql)).rows
    assert sum(r["freq"] for r in rows) == 50
    assert [r["bin"] for r in rows] == [0, 1, 2, 3]
    assert rows[0]["min"] == 50
    assert rows[-1]["max"] == 99


def test_widget_ignores_filters_of_another_layer():
    widgets = {"c": {"type": "aggregation", "options": {"column": "c"}}}
    mc = MapConfig.create(
        {
            "layers": [
                {"type": "mapnik", "options": {"sql": "select * from a", "widgets": widgets}},
                {"type": "mapnik", "options": {"sql": "select * from b", "widgets": widgets}},
            ]
        }
    )
    mc.set_filters_params({"layers": [{"c": {"accept": ["x"]}}]})

    other = mc.get_widget(1, "c").sql(mc.get_layer_filters(0))

    assert other == (
        "SELECT count(*) AS count, c FROM (select * from b) _cdb_aggregation"
        " GROUP BY c ORDER BY count DESC"
    )
    assert "_cdb_category_filter" in mc.get_widget(0, "c").sql(mc.get_layer_filters(0))

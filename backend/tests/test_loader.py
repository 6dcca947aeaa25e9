from __future__ import annotations

import json

import pytest

from common.errors import InvalidMapConfig
from mapconfig.loader import load_map_config, load_map_configs
from mapconfig.model import MapConfig

RAW = {
    "version": "1.0.1",
    "layers": [
        {
            "type": "cartodb",
            "options": {
                "sql": "select * from populated_places_simple_reduced",
                "cartocss": "#layer { marker-fill: red; }",
                "cartocss_version": "2.3.0",
                "widgets": {
                    "adm0name": {"type": "aggregation", "options": {"column": "adm0name", "aggregation": "count"}},
                },
            },
        },
        {"type": "http", "options": {"urlTemplate": "http://{s}.basemaps.example.com/{z}/{x}/{y}.png"}},
    ],
}

YAML_DOC = """
version: "1.0.1"
layers:
  - type: cartodb
    options:
      sql: select * from populated_places_simple_reduced
      cartocss: "#layer { marker-fill: red; }"
      cartocss_version: "2.3.0"
      widgets:
        adm0name:
          type: aggregation
          options:
            column: adm0name
            aggregation: count
  - type: http
    options:
      urlTemplate: "http://{s}.basemaps.example.com/{z}/{x}/{y}.png"
"""


def test_yaml_and_dict_give_same_identity(tmp_path):
    p = tmp_path / "places.yaml"
    p.write_text(YAML_DOC, encoding="utf-8")

    loaded = load_map_config(p)

    assert loaded.id() == MapConfig.create(RAW).id()
    assert loaded.get_widget(0, "adm0name").spec.options["column"] == "adm0name"


def test_load_json(tmp_path):
    p = tmp_path / "places.json"
    p.write_text(json.dumps(RAW), encoding="utf-8")
    assert load_map_config(p).to_dict() == MapConfig.create(RAW).to_dict()


def test_load_directory_keyed_by_stem(tmp_path):
    (tmp_path / "a.yaml").write_text(YAML_DOC, encoding="utf-8")
    (tmp_path / "b.json").write_text(json.dumps(RAW), encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    configs = load_map_configs(tmp_path)

    assert sorted(configs) == ["a", "b"]
    assert configs["a"].id() == configs["b"].id()
    assert load_map_configs(tmp_path / "missing") == {}


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_map_config(tmp_path / "nope.yaml")


def test_invalid_documents(tmp_path):
    p = tmp_path / "list.yaml"
    p.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(InvalidMapConfig):
        load_map_config(p)

    p = tmp_path / "empty_layers.yaml"
    p.write_text("layers: []\n", encoding="utf-8")
    with pytest.raises(InvalidMapConfig):
        load_map_config(p)

    p = tmp_path / "torque_without_sql.yaml"
    p.write_text("layers:\n  - type: torque\n    options: {}\n", encoding="utf-8")
    with pytest.raises(InvalidMapConfig):
        load_map_config(p)

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

import yaml

from common.errors import InvalidMapConfig
from mapconfig.model import MapConfig


def _load_document(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(raw)
    else:
        data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise InvalidMapConfig(f"Invalid map config root: {path}")
    return data


def load_map_config(path: str | Path) -> MapConfig:
    """
    Load a map configuration document (YAML or JSON) from disk.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Map config not found: {p}")
    return MapConfig.create(_load_document(p))


def iter_map_config_files(root: str | Path) -> Iterable[Path]:
    base = Path(root)
    if not base.exists():
        return []
    files = [p for p in base.iterdir() if p.suffix.lower() in {".yaml", ".yml", ".json"}]
    return sorted(files, key=lambda x: str(x))


def load_map_configs(root: str | Path) -> dict[str, MapConfig]:
    """
    Load every map config under a directory, keyed by file stem.
    """
    return {p.stem: load_map_config(p) for p in iter_map_config_files(root)}

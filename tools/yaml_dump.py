"""YAML helpers for fixture files.

Strings are emitted plain and raw bytes as lower-case hex, matching the JSON
fixtures produced by `fixtures_io`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


class FixtureDumper(yaml.SafeDumper):
    pass


def _str_representer(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=None)


def _bytes_representer(dumper: yaml.SafeDumper, data: bytes) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data.hex(), style=None)


FixtureDumper.add_representer(str, _str_representer)
FixtureDumper.add_representer(bytes, _bytes_representer)


def dump_yaml(data: dict[str, Any]) -> str:
    return yaml.dump(data, Dumper=FixtureDumper, sort_keys=False, width=4096)


def load_yaml(text: str) -> dict[str, Any]:
    loaded = yaml.safe_load(text)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError("fixture document must be a mapping")
    return loaded


def write_yaml(path: Path, data: dict[str, Any]) -> None:
    path.write_text(dump_yaml(data))

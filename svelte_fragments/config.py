from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class DividerConfig:
    markup_features: str = "html.parser"
    extract_expressions: bool = True


def default_config() -> DividerConfig:
    return DividerConfig()


def load_config(path: str | None, base: DividerConfig | None = None) -> DividerConfig:
    config = base or default_config()
    if not path:
        return config

    payload = _load_config_file(path)
    updates: dict[str, Any] = {}
    for item in fields(DividerConfig):
        if item.name not in payload:
            continue
        value = payload[item.name]
        expected = bool if item.type in {"bool", bool} else str
        if not isinstance(value, expected):
            raise ValueError(f"{path}: '{item.name}' must be a {expected.__name__}, got {type(value).__name__}")
        updates[item.name] = value
    return replace(config, **updates)


def _load_config_file(path: str) -> dict[str, Any]:
    data = Path(path).read_text(encoding="utf-8")
    suffix = Path(path).suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:
            raise RuntimeError("YAML config file requires pyyaml installed.") from exc
        parsed = yaml.safe_load(data)
    else:
        parsed = json.loads(data)
    return parsed if isinstance(parsed, dict) else {}

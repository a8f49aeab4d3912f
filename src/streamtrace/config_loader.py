"""Load TraceConfig from streamtrace.yaml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from streamtrace.config import TraceConfig

_KNOWN_KEYS = frozenset(
    {
        "log_path",
        "enabled",
        "sample_rate",
        "exclude_values",
        "tick_ms",
        "max_ticks",
        "marble_scale",
        "generic_labels",
        "max_events",
        "listener_queue_size",
    }
)


def load_config(root: Path, **overrides: object) -> TraceConfig:
    """Load TraceConfig from root, optionally merging streamtrace.yaml.

    Looks for streamtrace.yaml, streamtrace.yml, or streamtrace.toml in root.
    If found, loads and merges with overrides. Overrides set to None are
    ignored so that unset CLI flags do not mask file values.
    """
    file_config = _read_config_file(root)
    if "log_path" in file_config:
        # Relative log paths in a config file are relative to that file.
        log_path = Path(str(file_config["log_path"]))
        file_config["log_path"] = log_path if log_path.is_absolute() else root / log_path
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    if isinstance(merged.get("generic_labels"), (list, tuple, set)):
        merged["generic_labels"] = frozenset(str(v) for v in merged["generic_labels"])
    return TraceConfig(**merged)  # type: ignore[arg-type]


def _read_config_file(root: Path) -> dict[str, object]:
    """Read config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("streamtrace.yaml", "streamtrace.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "streamtrace.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    """Parse YAML config. Returns empty dict on error."""
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(data, dict):
        return {}
    return _flatten_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    """Parse TOML config. Returns empty dict on error."""
    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return _flatten_section(data)


def _flatten_section(data: dict[str, object]) -> dict[str, object]:
    """Extract streamtrace.* keys and known top-level keys into one mapping."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k != "streamtrace" and k in _KNOWN_KEYS:
            result[k] = v
    section = data.get("streamtrace")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _KNOWN_KEYS:
                result[k] = v
    return result

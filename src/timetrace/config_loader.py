"""Load TraceConfig from timetrace.yaml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from timetrace._errors import ConfigError
from timetrace.config import TraceConfig

_KNOWN_KEYS = ("decl_verbosity", "output_dir", "output_suffix", "dump_name", "verbose")


def load_config(root: Path, **overrides: object) -> TraceConfig:
    """Load TraceConfig from root, optionally merging timetrace.yaml.

    Looks for timetrace.yaml, timetrace.yml, or timetrace.toml in root. If
    found, loads and merges with overrides. Overrides take precedence;
    overrides set to ``None`` are ignored.
    """
    file_config = _read_config_file(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    unknown = sorted(set(merged) - set(_KNOWN_KEYS))
    if unknown:
        msg = f"unknown config keys: {', '.join(unknown)}"
        raise ConfigError(msg)
    if merged.get("output_dir") is not None and not isinstance(merged["output_dir"], Path):
        output_dir = Path(str(merged["output_dir"]))
        merged["output_dir"] = output_dir if output_dir.is_absolute() else root / output_dir
    return TraceConfig(**merged)  # type: ignore[arg-type]


def _read_config_file(root: Path) -> dict[str, object]:
    """Read config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("timetrace.yaml", "timetrace.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "timetrace.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"cannot read {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping"
        raise ConfigError(msg)
    return _flatten_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"cannot read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_section(data)


def _flatten_section(data: dict[str, object]) -> dict[str, object]:
    """Extract timetrace.* keys into top-level config."""
    result: dict[str, object] = {}
    section = data.get("timetrace")
    if isinstance(section, dict):
        result.update(section)
    for k, v in data.items():
        if k != "timetrace" and k in _KNOWN_KEYS:
            result[k] = v
    return result

from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from hartopy.synthesis.model import CollisionPolicy, SynthesisConfig

DEFAULT_CONFIG_NAME = "hartopy.toml"
DEFAULT_DIR_SUFFIX = "_req"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    """Read `config_path`, or `<root>/hartopy.toml`; unreadable files read as empty."""
    if config_path is None:
        config_path = (root if root is not None else Path.cwd()) / DEFAULT_CONFIG_NAME
    try:
        with config_path.open("rb") as handle:
            return tomllib.load(handle)
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
        return {}


def section_defaults(
    name: str, root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    section = load_config(root=root, config_path=config_path).get(name, {})
    return section if isinstance(section, dict) else {}


def synthesis_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return section_defaults("synthesis", root=root, config_path=config_path)


def output_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    return section_defaults("output", root=root, config_path=config_path)


def _truthy(value: TomlValue) -> bool:
    match value:
        case bool():
            return value
        case int():
            return value != 0
        case str():
            return value.strip().lower() in _TRUE_STRINGS
    return False


def _text(value: TomlValue, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def synthesis_config(section: TomlTable | None) -> SynthesisConfig:
    """Build a `SynthesisConfig`; unknown or malformed values keep their defaults."""
    defaults = SynthesisConfig()
    if not isinstance(section, dict):
        return defaults
    raw_policy = _text(section.get("collision_policy"), defaults.collision_policy.value)
    try:
        policy = CollisionPolicy(raw_policy.lower())
    except ValueError:
        policy = defaults.collision_policy
    return SynthesisConfig(
        wrapper_suffix=_text(section.get("wrapper_suffix"), defaults.wrapper_suffix),
        collision_policy=policy,
        identifier_prefix=_text(section.get("identifier_prefix"), defaults.identifier_prefix),
    )


def output_dir_suffix(section: TomlTable | None) -> str:
    value = section.get("dir_suffix") if isinstance(section, dict) else None
    return value if isinstance(value, str) else DEFAULT_DIR_SUFFIX


def output_keep_invalid(section: TomlTable | None) -> bool:
    return isinstance(section, dict) and _truthy(section.get("keep_invalid"))


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    """Overlay the non-None values of `payload` onto `defaults`."""
    merged = dict(defaults)
    merged.update({key: value for key, value in payload.items() if value is not None})
    return merged

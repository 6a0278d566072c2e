"""TOML read, overlay and write helpers shared by doc_quiz commands."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Mapping, MutableMapping

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
]


class TomlConfigError(RuntimeError):
    """A TOML file could not be read, overlaid or written."""


def load_toml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise TomlConfigError(f"Failed to parse {path.name}: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Overlay ``override`` onto ``base`` in place.

    Every key must already exist in ``base``, and a table in ``base`` only
    accepts a table.
    """

    unknown = [key for key in override if key not in base]
    if unknown:
        raise TomlConfigError(
            f"Unknown configuration key '{path}{unknown[0]}'."
        )
    for key, value in override.items():
        target = base[key]
        if not isinstance(target, MutableMapping):
            base[key] = value
        elif isinstance(value, Mapping):
            merge_defaults(target, value, path=f"{path}{key}.")
        else:
            raise TomlConfigError(
                f"Expected table for '{path}{key}', "
                f"found {type(value).__name__}."
            )


def write_toml_template(
    path: Path, *, template: str, overwrite: bool = False
) -> Path:
    """Write ``template`` to ``path`` as an owner-only file."""

    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template, encoding="utf-8")
    path.chmod(0o600)
    return path

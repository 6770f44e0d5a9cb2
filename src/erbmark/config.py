"""
TOML config files for erbmark.

The nearest `.erbmark.toml`, `erbmark.toml` or `pyproject.toml` with a
`[tool.erbmark]` table, walking up from the working directory, supplies defaults.
Explicit CLI flags always win over the config file, which wins over built-in
defaults.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, TypeVar, cast

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]

logger = logging.getLogger(__name__)

TOOL_NAME = "erbmark"

CONFIG_FILENAMES = [f".{TOOL_NAME}.toml", f"{TOOL_NAME}.toml", "pyproject.toml"]


@dataclass
class ErbmarkConfig:
    """
    Settings read from a config file. A field is `None` when the file does not
    set it, so that merging can tell "unset" apart from "set to the default".
    """

    width: int | None = None
    reformatter: str | None = None
    include: list[str] | None = None
    extend_include: list[str] | None = None
    exclude: list[str] | None = None
    extend_exclude: list[str] | None = None
    files_max_size: int | None = None
    respect_gitignore: bool | None = None
    force_exclude: bool | None = None


_FIELD_NAMES = {f.name for f in fields(ErbmarkConfig)}


def _pyproject_table(data: dict[str, Any]) -> dict[str, Any] | None:
    return data.get("tool", {}).get(TOOL_NAME)


def find_config_file(start_dir: Path) -> Path | None:
    """
    The first config file found in `start_dir` or its parents, checking
    `.erbmark.toml`, then `erbmark.toml`, then `pyproject.toml` in each directory.
    A `pyproject.toml` only counts if it has a `[tool.erbmark]` table.
    """
    start = start_dir.resolve()
    for directory in (start, *start.parents):
        for filename in CONFIG_FILENAMES:
            candidate = directory / filename
            if not candidate.is_file():
                continue
            if filename != "pyproject.toml":
                return candidate
            try:
                if _pyproject_table(tomllib.loads(candidate.read_text(encoding="utf-8"))) is not None:
                    return candidate
            except (tomllib.TOMLDecodeError, OSError) as e:
                logger.warning("Ignoring unreadable %s: %s", candidate, e)
    return None


def load_config(config_path: Path) -> ErbmarkConfig:
    """
    Read an `ErbmarkConfig` from a TOML file. Keys may be kebab-case and may be
    grouped in sections like `[formatting]` or `[file-discovery]`; unknown keys
    are ignored.
    """
    data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    if config_path.name == "pyproject.toml":
        data = _pyproject_table(data) or {}

    flat: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            flat.update(cast(dict[str, Any], value))
        else:
            flat[key] = value

    values: dict[str, Any] = {}
    for key, value in flat.items():
        name = key.replace("-", "_")
        if name in _FIELD_NAMES:
            values[name] = value
        else:
            logger.warning("Unknown key in %s: %s", config_path, key)

    logger.debug("loaded config from %s: %s", config_path, values)
    return ErbmarkConfig(**values)


_T = TypeVar("_T")


def merge_cli_with_config(cli_opts: _T, config: ErbmarkConfig | None, explicit_flags: set[str]) -> _T:
    """
    Copy config values onto `cli_opts` for every option the user did not pass
    explicitly on the command line.
    """
    if config is None:
        return cli_opts

    for name in sorted(_FIELD_NAMES - explicit_flags):
        value = getattr(config, name)
        if value is not None and hasattr(cli_opts, name):
            setattr(cli_opts, name, value)
    return cli_opts

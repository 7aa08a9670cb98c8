"""Locate and parse the optional service configuration file."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Final

import yaml

from site_carbon.settings import SiteCarbonSettings

LOGGER = logging.getLogger(__name__)

SEARCH_PATHS: Final[tuple[Path, ...]] = (
    Path("config") / "site_carbon.yml",
    Path("config") / "site_carbon.yaml",
    Path("config") / "site_carbon.json",
)

_PARSERS: Final[dict[str, Callable[[str], object]]] = {
    ".json": json.loads,
    ".yml": yaml.safe_load,
    ".yaml": yaml.safe_load,
}
_PARSE_ERRORS: Final[tuple[type[Exception], ...]] = (
    json.JSONDecodeError,
    yaml.YAMLError,
)


def _candidate_paths(
    path: str | None, settings: SiteCarbonSettings
) -> Iterator[Path]:
    explicit = path if path is not None else settings.config_path
    if explicit:
        yield Path(explicit)
        return
    yield from SEARCH_PATHS


def load_structured_config(
    path: str | None, settings: SiteCarbonSettings
) -> dict[str, object] | None:
    """Return the first readable configuration mapping, or ``None``.

    An explicit ``path`` wins over ``SITE_CARBON_CONFIG_PATH``; without
    either, :data:`SEARCH_PATHS` are tried relative to the working directory.
    Files that are missing, unreadable, unparseable, or not a mapping are
    skipped.
    """

    for candidate in _candidate_paths(path, settings):
        data = _read_mapping(candidate)
        if data is not None:
            LOGGER.debug("Loaded configuration", extra={"path": str(candidate)})
            return data
    return None


def _read_mapping(path: Path) -> dict[str, object] | None:
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None or not path.is_file():
        return None
    try:
        raw = parser(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError):
        return None
    except _PARSE_ERRORS:
        LOGGER.warning("Ignoring unparseable configuration", extra={"path": str(path)})
        return None
    if not isinstance(raw, dict):
        LOGGER.warning(
            "Ignoring configuration that is not a mapping", extra={"path": str(path)}
        )
        return None
    return {key: value for key, value in raw.items() if isinstance(key, str)}

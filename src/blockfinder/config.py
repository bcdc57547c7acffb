"""Application configuration: config.toml values merged with CLI options."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from blockfinder.errors import InvalidParameter, MissingParameter
from blockfinder.models import SearchRequest

DEFAULT_CONFIG_PATH = Path("config.toml")


@dataclass(slots=True)
class AppConfig:
    block: Optional[str] = None
    path: Optional[Path] = None
    home: Optional[Tuple[int, int]] = None
    show_all: bool = False
    max_distance: Optional[int] = None
    workers: Optional[int] = None
    fail_fast: bool = False

    def merge(self, **overrides: Any) -> AppConfig:
        """Return a copy where every override that is not None replaces the current value."""
        known = {item.name for item in fields(self)}
        values = {key: value for key, value in overrides.items() if value is not None}
        unknown = set(values) - known
        if unknown:
            raise InvalidParameter(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return replace(self, **values)

    def to_request(self) -> SearchRequest:
        if not self.block:
            raise MissingParameter(
                'No block provided. Run as blockfinder find "diamond_ore" --path "..."'
            )
        if self.path is None:
            raise MissingParameter("No region path provided (directory of .mca files)")
        if self.max_distance is not None and self.max_distance < 0:
            raise InvalidParameter(
                f"Maximum distance must not be negative, got {self.max_distance}"
            )
        if self.workers is not None and self.workers < 1:
            raise InvalidParameter(f"Worker count must be at least 1, got {self.workers}")
        return SearchRequest(
            block=self.block,
            path=Path(self.path),
            origin=self.home,
            max_distance=self.max_distance,
            show_all=self.show_all,
        )


def load_file_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Read a TOML config file; a missing file gives the defaults."""
    path = Path(path)
    if not path.exists():
        return AppConfig()
    try:
        with path.open("rb") as handle:
            raw = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise InvalidParameter(f"Invalid config file {path}: {exc}") from exc
    return AppConfig(**_validate(raw, path))


def _validate(raw: Dict[str, Any], source: Path) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        if key == "block":
            values[key] = _expect(value, str, key, source)
        elif key == "path":
            values[key] = Path(_expect(value, str, key, source))
        elif key == "home":
            if (
                not isinstance(value, list)
                or len(value) != 2
                or not all(isinstance(item, int) and not isinstance(item, bool) for item in value)
            ):
                raise InvalidParameter(f"{source}: 'home' must be an array of two integers")
            values[key] = (value[0], value[1])
        elif key in ("show_all", "fail_fast"):
            values[key] = _expect(value, bool, key, source)
        elif key in ("max_distance", "workers"):
            if isinstance(value, bool):
                raise InvalidParameter(f"{source}: '{key}' must be an integer")
            values[key] = _expect(value, int, key, source)
        else:
            raise InvalidParameter(f"{source}: unknown key '{key}'")
    return values


def _expect(value: Any, kind: type, key: str, source: Path) -> Any:
    if not isinstance(value, kind):
        raise InvalidParameter(f"{source}: '{key}' must be of type {kind.__name__}")
    return value

"""Collection settings and environment loading."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

from vinylshelf import __version__
from vinylshelf.errors import ConfigError
from vinylshelf.models import SORT_BY_CHOICES, VARIOUS_POLICY_CHOICES, OrderingPolicy

DEFAULT_USER_AGENT = f"VinylShelf/{__version__} (+contact)"
MAX_PER_PAGE = 100

_ENV_OVERRIDES = {
    "VINYLSHELF_SORT_BY": "sort_by",
    "VINYLSHELF_VARIOUS_POLICY": "various_policy",
    "VINYLSHELF_USER_AGENT": "user_agent",
}


@dataclass(frozen=True)
class CollectionSettings:
    sort_by: str = "artist"
    various_policy: str = "last"
    show_dividers: bool = True
    lp_strict: bool = False
    extra_articles: Tuple[str, ...] = ()
    per_page: int = MAX_PER_PAGE
    max_pages: Optional[int] = None
    user_agent: str = DEFAULT_USER_AGENT
    currency: str = "USD"

    def __post_init__(self) -> None:
        if self.sort_by not in SORT_BY_CHOICES:
            raise ConfigError(f"Unsupported sort_by: {self.sort_by}")
        if self.various_policy not in VARIOUS_POLICY_CHOICES:
            raise ConfigError(f"Unsupported various_policy: {self.various_policy}")
        # Discogs caps page size at 100
        object.__setattr__(self, "per_page", max(1, min(_as_count("per_page", self.per_page), MAX_PER_PAGE)))
        if self.max_pages is not None:
            max_pages = _as_count("max_pages", self.max_pages)
            if max_pages < 1:
                raise ConfigError(f"max_pages must be at least 1, got {self.max_pages!r}")
            object.__setattr__(self, "max_pages", max_pages)
        object.__setattr__(self, "extra_articles", parse_articles(self.extra_articles))

    def policy(self) -> OrderingPolicy:
        return OrderingPolicy(sort_by=self.sort_by, various_policy=self.various_policy)

    def with_overrides(self, **overrides: Any) -> "CollectionSettings":
        """Apply the non-None overrides (e.g. parsed CLI flags)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _as_count(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a whole number, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a whole number, got {value!r}") from e


def parse_articles(value: Any) -> Tuple[str, ...]:
    """Accept "le,la,les" or a list, return stripped non-empty articles."""
    if isinstance(value, str):
        value = value.split(",")
    return tuple(a.strip() for a in (value or ()) if isinstance(a, str) and a.strip())


def load_environment(dotenv_path: Optional[Path] = None) -> None:
    """Load a .env file into the process environment without overriding it."""
    load_dotenv(dotenv_path=dotenv_path, override=False)


def default_config_path() -> Path:
    return Path.home() / ".config" / "vinylshelf" / "settings.json"


def load_settings(path: Optional[Path]) -> CollectionSettings:
    """Load settings from JSON config file, with environment variable overrides.

    Priority order:
    1. Environment variables (VINYLSHELF_SORT_BY, VINYLSHELF_VARIOUS_POLICY,
       VINYLSHELF_USER_AGENT)
    2. JSON config file
    3. Defaults

    Unknown keys in the file are ignored.

    Raises:
        ConfigError: if the file is unreadable JSON or a value is invalid
    """
    json_settings: Dict[str, Any] = {}
    if path and path.exists():
        try:
            json_settings = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise ConfigError(f"Invalid settings file {path}: {e}") from e
        if not isinstance(json_settings, dict):
            raise ConfigError(f"Settings file {path} must contain a JSON object")

    known = {f.name for f in fields(CollectionSettings)}
    values = {k: v for k, v in json_settings.items() if k in known}
    for env_name, key in _ENV_OVERRIDES.items():
        env_value = os.getenv(env_name)
        if env_value:
            values[key] = env_value.strip()

    try:
        return CollectionSettings(**values)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid settings: {e}") from e

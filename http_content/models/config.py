"""
Pydantic model for application configuration, plus the runtime settings holder
that notifies subscribers when a value changes.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from http_content.exceptions import ConfigurationError

log = logging.getLogger(__name__)

DEFAULT_LIFETIME_HOURS = 24
DEFAULT_FETCH_TIMEOUT = 120.0

SettingsCallback = Callable[[str, Any, Any], None]


class ContentConfig(BaseModel):
    """A validated configuration model for the content cache."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    cache_dir: Path
    realm: Literal["client", "server"] = "client"
    lifetime_hours: float = Field(default=DEFAULT_LIFETIME_HOURS, ge=0)
    autoremove: bool = True
    fetch_timeout: float = Field(default=DEFAULT_FETCH_TIMEOUT, gt=0)
    game_dir: Path | None = None

    @field_validator("cache_dir", "game_dir")
    @classmethod
    def expand_user(cls, v: Path | None) -> Path | None:
        """Expands '~' so relative home paths from the INI file work."""
        return v.expanduser() if v is not None else None

    @property
    def content_root(self) -> Path:
        """Directory holding every cached bucket for this realm."""
        return self.cache_dir / self.realm / "content"

    @property
    def game_root(self) -> Path:
        """Read-only directory backing the GAME namespace."""
        return self.game_dir or self.cache_dir / "game"

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        return set(cls.model_fields)


def coerce_lifetime(value: Any) -> float:
    """Parses a lifetime in hours, falling back to one hour on garbage input."""
    try:
        hours = float(value)
    except (TypeError, ValueError):
        log.warning(f"Invalid content lifetime '{value}', using 1 hour.")
        return 1.0
    return hours if hours >= 0 else 1.0


class ContentSettings:
    """
    Runtime view of a ContentConfig.

    Values are read on every access, so a change applies to the next call of any
    component holding this object. Subscribers are notified with
    ``(key, old, new)`` after a value actually changes.
    """

    def __init__(self, config: ContentConfig):
        self._config = config
        self._subscribers: dict[str, list[SettingsCallback]] = defaultdict(list)

    @property
    def config(self) -> ContentConfig:
        return self._config

    @property
    def lifetime_hours(self) -> float:
        return self._config.lifetime_hours

    @property
    def ttl_seconds(self) -> float:
        return self._config.lifetime_hours * 3600

    @property
    def autoremove(self) -> bool:
        return self._config.autoremove

    @property
    def fetch_timeout(self) -> float:
        return self._config.fetch_timeout

    @property
    def content_root(self) -> Path:
        return self._config.content_root

    @property
    def game_root(self) -> Path:
        return self._config.game_root

    def subscribe(self, key: str, callback: SettingsCallback) -> Callable[[], None]:
        """
        Registers a change callback for a setting.

        Returns:
            A function that removes the subscription again.
        """
        if key not in ContentConfig.model_fields:
            raise ConfigurationError(f"Unknown setting '{key}'.")
        self._subscribers[key].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[key]:
                self._subscribers[key].remove(callback)

        return unsubscribe

    def set(self, key: str, value: Any) -> None:
        """Updates a setting and notifies subscribers if the value changed."""
        if key not in ContentConfig.model_fields:
            raise ConfigurationError(f"Unknown setting '{key}'.")
        if key == "lifetime_hours":
            value = coerce_lifetime(value)

        old = getattr(self._config, key)
        try:
            setattr(self._config, key, value)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid value for '{key}': {e}") from e

        new = getattr(self._config, key)
        if new == old:
            return
        log.debug(f"Setting '{key}' changed from {old!r} to {new!r}.")
        for callback in list(self._subscribers[key]):
            callback(key, old, new)

"""Configuration loader for the viewer service."""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

from ..domain.exceptions import ConfigError

logger = logging.getLogger(__name__)


class QueryMode(Enum):
    """How search criteria are sent to the backend."""

    PROMPT = "prompt"
    STRUCTURED = "structured"


class RenderMode(Enum):
    """How events are turned into gallery cards."""

    EXPAND_ALL = "expand_all"
    REPRESENTATIVE = "representative"


class ColorMode(Enum):
    """Algorithm used to color events."""

    BUCKET = "bucket"
    HASH = "hash"


class BadgeMode(Enum):
    """Detail view badge format for detected objects."""

    CLASS = "class"
    AGGREGATE = "aggregate"


class IconMatch(Enum):
    """How object labels are matched against the icon table."""

    EXACT = "exact"
    CONTAINS = "contains"


_ENUM_FIELDS: dict[str, type[Enum]] = {
    "query_mode": QueryMode,
    "render_mode": RenderMode,
    "color_mode": ColorMode,
    "badge_mode": BadgeMode,
    "icon_match": IconMatch,
}


@dataclass
class ViewerConfig:
    """Deployment settings for one viewer service."""

    api_url: str = "http://localhost:8080/api"
    image_base_url: str = "/images/"
    video_base_url: str = "/rec/"
    query_mode: QueryMode = QueryMode.PROMPT
    render_mode: RenderMode = RenderMode.EXPAND_ALL
    color_mode: ColorMode = ColorMode.BUCKET
    badge_mode: BadgeMode = BadgeMode.AGGREGATE
    icon_match: IconMatch = IconMatch.EXACT
    request_timeout: float = 10.0

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a JSON-serializable dictionary."""
        data = asdict(self)
        for key in _ENUM_FIELDS:
            data[key] = data[key].value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ViewerConfig":
        """Create config from a dictionary, ignoring unknown keys.

        Raises:
            ConfigError: If an enum-valued key holds an unknown value or the
                timeout is not a positive number.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            enum_type = _ENUM_FIELDS.get(key)
            if enum_type is not None:
                try:
                    value = enum_type(value)
                except ValueError:
                    allowed = ", ".join(member.value for member in enum_type)
                    raise ConfigError(key, f"must be one of: {allowed}")
            values[key] = value

        if "request_timeout" in values:
            timeout = values["request_timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ConfigError("request_timeout", "must be a number")
            if timeout <= 0:
                raise ConfigError("request_timeout", "must be positive")
            values["request_timeout"] = float(timeout)

        return cls(**values)


class ConfigLoader:
    """Loads viewer configuration from a JSON file or falls back to defaults."""

    def load(self, config_path: str | None = None) -> ViewerConfig:
        """Load configuration from file or use defaults."""
        return ViewerConfig.from_dict(self._load_config_file(config_path))

    def _load_config_file(self, config_path: str | None = None) -> dict:
        """Load configuration from JSON file."""
        if config_path is None:
            # Try multiple locations in order
            possible_paths = [
                os.getenv("MOTIONVIEW_CONFIG_PATH"),
                str(Path.home() / ".motionview" / "config.json"),
                "/etc/motionview/config.json",
            ]

            for path in possible_paths:
                if path and Path(path).exists():
                    config_path = path
                    break

        if config_path:
            config_file = Path(config_path)
            if config_file.exists():
                try:
                    with open(config_file) as f:
                        data = json.load(f)
                    if isinstance(data, dict):
                        logger.info(f"Loaded config from {config_file}")
                        return data
                    logger.warning(f"Config file {config_file} is not an object")
                except (OSError, json.JSONDecodeError) as e:
                    logger.warning(f"Could not read config file {config_file}: {e}")
            else:
                logger.warning(f"Config file not found: {config_file}")

        return {}

    def create_default_config_file(self, config_path: str | None = None) -> str:
        """Create a default configuration file."""
        if config_path is None:
            config_path = "config/motionview.json"

        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w") as f:
            json.dump(ViewerConfig().to_dict(), f, indent=2)

        return str(config_file)

"""Engine settings resolver with layered priority.

Priority (highest to lowest):
1. Explicit overrides (host application)
2. Environment variables (ASBUILT_*)
3. Config files (user > system)
4. Defaults

These are settings of the engine itself (logging, date format, where utility
configuration documents live). Utility configuration documents are loaded by
``asbuilt.core.models.load_utility_configuration``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from asbuilt.core.errors import ConfigError
from asbuilt.core.logging import LEVEL_NAMES, set_colors, set_verbosity

ALLOWED_LOGGING_LEVELS = frozenset(LEVEL_NAMES)
DEFAULT_LOGGING_LEVEL = "normal"
DEFAULT_DATE_FORMAT = "%m/%d/%Y"

_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no"})


def parse_bool(value: Any) -> bool | None:
    """Boolean from a bool, 0/1 or a 'true'/'false' style string; None otherwise."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return None


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'override' | 'env' | 'user_config' | 'system_config' | 'default'


class ConfigResolver:
    """Resolve engine settings with strict priority.

    Example:
        resolver = ConfigResolver(
            overrides={'logging': {'level': 'debug'}},
            user_config_path=Path('~/.config/asbuilt/config.yaml'),
        )

        level, source = resolver.resolve('logging.level')
        # level = 'debug', source = 'override'
    """

    def __init__(
        self,
        overrides: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        self.overrides = overrides or {}
        self.user_config_path = user_config_path or Path.home() / ".config/asbuilt/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/asbuilt/config.yaml")
        self.defaults = self._default_config() if defaults is None else defaults

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'logging.level')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._get_nested(self.overrides, key)
        if value is not None:
            return value, "override"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Allowed values (after normalization): quiet | normal | verbose | debug.
        Falls back to DEFAULT_LOGGING_LEVEL when no source provides the key.

        Raises:
            ConfigError: If the resolved value is invalid.
        """
        key = "logging.level"
        found = self._try_resolve(key)
        if found is None:
            return DEFAULT_LOGGING_LEVEL

        value, _source = found
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")
        return norm

    def resolve_date_format(self) -> str:
        """strftime pattern used for the 'today' auto-fill source."""
        found = self._try_resolve("autofill.date_format")
        if found is None:
            return DEFAULT_DATE_FORMAT
        value, _source = found
        if not isinstance(value, str) or not value.strip():
            raise ConfigError("Config key 'autofill.date_format' must be a non-empty string")
        return value

    def resolve_bool(self, key: str, default: bool = False) -> bool:
        """Resolve a boolean key; env strings 'true'/'false'/'1'/'0' are accepted."""
        found = self._try_resolve(key)
        if found is None:
            return default
        value, _source = found
        parsed = parse_bool(value)
        if parsed is not None:
            return parsed
        raise ConfigError(f"Config key '{key}' must be a bool")

    def resolve_configs_dir(self) -> Path:
        """Directory holding per-utility configuration documents (<code>.yaml)."""
        value, _source = self.resolve("wizard.configs_dir")
        if not isinstance(value, str | Path) or str(value).strip() == "":
            raise ConfigError("Config key 'wizard.configs_dir' must be a non-empty path")
        return Path(value).expanduser()

    def resolve_all(self) -> dict[str, ConfigSource]:
        """Resolve every key known from defaults, overrides and config files."""
        all_keys: set[str] = set()
        for data in (
            self.defaults,
            self.overrides,
            self._get_user_config(),
            self._get_system_config(),
        ):
            all_keys.update(k for k, _v in _flatten_items(data))

        result: dict[str, ConfigSource] = {}
        for key in sorted(all_keys):
            try:
                value, source = self.resolve(key)
            except ConfigError:
                continue
            result[key] = ConfigSource(value=value, source=source)
        return result

    def _try_resolve(self, key: str) -> tuple[Any, str] | None:
        try:
            return self.resolve(key)
        except ConfigError:
            return None

    def _from_env(self, key: str) -> Any | None:
        """Environment variable format: ASBUILT_LOGGING_LEVEL for 'logging.level'."""
        env_key = f"ASBUILT_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'logging': {'level': 'debug'}}
            _get_nested(data, 'logging.level') -> 'debug'
        """
        current: Any = data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        return {
            "logging": {
                "level": DEFAULT_LOGGING_LEVEL,
                "color": True,
            },
            "autofill": {
                "date_format": DEFAULT_DATE_FORMAT,
            },
            "wizard": {
                "auto_detect_work_type": True,
                "configs_dir": str(Path.home() / ".asbuilt" / "utilities"),
            },
        }


def _flatten_items(data: dict[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    items: list[tuple[str, Any]] = []
    for key, value in data.items():
        key_path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            items.extend(_flatten_items(value, key_path))
        else:
            items.append((key_path, value))
    return items


def apply_logging_config(resolver: ConfigResolver) -> None:
    """Apply resolved logging.level and logging.color to the core logger."""
    set_verbosity(resolver.resolve_logging_level())
    set_colors(resolver.resolve_bool("logging.color", default=True))

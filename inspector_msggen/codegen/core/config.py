"""
Configuration management for code generation.

Settings come from three layers, later ones winning: built-in defaults,
an optional JSON config file, and explicit overrides (usually CLI flags).
Keys the generator does not know as fields are treated as C++ type
overrides and collected under ``custom``.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Union

from ...logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_ROOT_NAMESPACE = "facebook::hermes::inspector::chrome::message"

DEFAULT_INCLUDES = [
    "<memory>",
    "<optional>",
    "<string>",
    "<vector>",
    "<folly/dynamic.h>",
]

# C++ spellings of protocol types; any key may be overridden through ``custom``
DEFAULT_TYPE_SETTINGS = {
    "bool_type": "bool",
    "int_type": "int",
    "double_type": "double",
    "string_type": "std::string",
    "dynamic_type": "folly::dynamic",
    "optional_template": "std::optional",
    "array_template": "std::vector",
    "pointer_template": "std::unique_ptr",
}


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""

    pass


@dataclass
class GeneratorConfig:
    """Configuration for the C++ message generator."""

    output_file: Optional[str] = None
    root_namespace: str = DEFAULT_ROOT_NAMESPACE

    # Experimental filtering
    ignore_experimental: bool = False
    include_experimental: FrozenSet[str] = frozenset()

    # Code style
    indent_size: int = 2
    add_comments: bool = True
    includes: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDES))

    # Type overrides, see DEFAULT_TYPE_SETTINGS
    custom: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # JSON gives lists; the inclusion set is read-only during a run
        self.include_experimental = frozenset(self.include_experimental or ())

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible form, as written by :meth:`ConfigManager.save_config`."""
        data = asdict(self)
        data["include_experimental"] = sorted(self.include_experimental)
        return data


# Expected JSON types of the file/override values
_FIELD_TYPES = {
    "output_file": (str, type(None)),
    "root_namespace": str,
    "ignore_experimental": bool,
    "include_experimental": (list, tuple, set, frozenset),
    "indent_size": int,
    "add_comments": bool,
    "includes": list,
    "custom": dict,
}


class ConfigManager:
    """Merges defaults, config files and overrides into a GeneratorConfig."""

    def __init__(self):
        self._field_names = {f.name for f in fields(GeneratorConfig)}

    def get_config(
        self,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> GeneratorConfig:
        """
        Build the effective configuration.

        Args:
            custom_config: Explicit overrides (highest precedence)
            config_file: Path to JSON configuration file

        Raises:
            ConfigError: Unreadable file or a value of the wrong type
        """
        merged: Dict[str, Any] = {"custom": dict(DEFAULT_TYPE_SETTINGS)}
        layers = []
        if config_file:
            layers.append((str(config_file), self._load_config_file(config_file)))
        if custom_config:
            layers.append(("overrides", custom_config))

        for origin, layer in layers:
            for key, value in self._normalize(layer, origin).items():
                if key == "custom":
                    merged["custom"].update(value)
                else:
                    merged[key] = value

        return GeneratorConfig(**merged)

    def _normalize(self, layer: Dict[str, Any], origin: str) -> Dict[str, Any]:
        """Type-check known keys and move unknown ones under ``custom``."""
        normalized: Dict[str, Any] = {"custom": {}}
        for key, value in layer.items():
            if key not in self._field_names:
                normalized["custom"][key] = value
                continue

            expected = _FIELD_TYPES[key]
            # bool is an int subclass; indent_size must be a real int
            if not isinstance(value, expected) or (key == "indent_size" and isinstance(value, bool)):
                raise ConfigError(
                    f"{origin}: '{key}' has wrong type {type(value).__name__}"
                )
            if key == "custom":
                normalized["custom"].update(value)
            else:
                normalized[key] = value
        return normalized

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")
        if path.suffix.lower() != ".json":
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        logger.debug("Loaded configuration from %s", path)
        return data

    def save_config(self, config: GeneratorConfig, output_path: Union[str, Path]) -> None:
        """Write a configuration as JSON that :meth:`get_config` reads back."""
        path = Path(output_path)
        try:
            path.write_text(
                json.dumps(config.to_dict(), indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {e}") from e

    def validate_config(self, config: GeneratorConfig) -> List[str]:
        """Return warnings for settings that would produce a broken header."""
        warnings = []

        if config.root_namespace:
            warnings.extend(
                f"Invalid root_namespace component: {part!r}"
                for part in config.root_namespace.split("::")
                if not part.isidentifier()
            )

        if config.indent_size < 0:
            warnings.append(f"Invalid indent_size: {config.indent_size}")

        warnings.extend(
            f"Malformed include_experimental entry: {name!r}"
            for name in sorted(config.include_experimental)
            if not all(part.isidentifier() for part in name.split("."))
        )

        warnings.extend(
            f"Unknown custom setting: {key}"
            for key in sorted(set(config.custom) - set(DEFAULT_TYPE_SETTINGS))
        )
        return warnings


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the shared configuration manager."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> GeneratorConfig:
    """Convenience wrapper around :meth:`ConfigManager.get_config`."""
    return get_config_manager().get_config(custom_config, config_file)


# Example configuration file for reference
EXAMPLE_CONFIG = {
    "root_namespace": DEFAULT_ROOT_NAMESPACE,
    "ignore_experimental": True,
    "include_experimental": ["Runtime.getHeapUsage", "Debugger.setBlackboxedRanges"],
    "optional_template": "folly::Optional",
}

"""Engine configuration: defaults from Constants, optional YAML/JSON overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from constants import Constants, RegistryFormat

logger = logging.getLogger(__name__)

CONFIG_SECTION = "compforge"


class ConfigError(ValueError):
    """Configuration file is unreadable or holds invalid values."""


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for one resolution engine.

    ``substitutions`` lists the enabled library-substitution rules by name;
    None enables every known rule.
    """
    registry_base_url: str = Constants.REGISTRY_BASE_URL
    registry_format: RegistryFormat = RegistryFormat.SOURCE
    source_extension: Optional[str] = None
    target_extension: str = Constants.TARGET_EXTENSION
    components_dir: str = Constants.COMPONENTS_DIR
    internal_alias: str = Constants.INTERNAL_ALIAS
    shared_lib_alias: str = Constants.SHARED_LIB_ALIAS
    request_timeout: float = Constants.REQUEST_TIMEOUT
    max_concurrency: int = Constants.MAX_CONCURRENCY
    baseline_dependencies: Dict[str, str] = field(
        default_factory=lambda: dict(Constants.BASELINE_DEPENDENCIES)
    )
    base_runtime_packages: Tuple[str, ...] = Constants.BASE_RUNTIME_PACKAGES
    substitutions: Optional[Tuple[str, ...]] = None
    project_name: str = Constants.DEFAULT_PROJECT_NAME

    @property
    def effective_source_extension(self) -> str:
        if self.source_extension:
            return self.source_extension
        if self.registry_format is RegistryFormat.JSON:
            return Constants.JSON_EXTENSION
        return Constants.SOURCE_EXTENSION

    def source_url(self, name: str) -> str:
        """Registry URL for one module."""
        return f"{self.registry_base_url.rstrip('/')}/{name}{self.effective_source_extension}"

    def canonical_path(self, name: str) -> str:
        """Virtual project path of a module."""
        return f"{self.components_dir.rstrip('/')}/{name}{self.target_extension}"

    def with_overrides(self, **overrides: Any) -> "EngineConfig":
        return replace(self, **overrides)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EngineConfig":
        """Build a config from plain data, validating keys and types."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            if key == "registry_format":
                try:
                    values[key] = value if isinstance(value, RegistryFormat) else RegistryFormat(str(value).lower())
                except ValueError as exc:
                    raise ConfigError(f"Unsupported registry_format: {value!r}") from exc
            elif key in ("request_timeout",):
                values[key] = _positive_number(key, value, float)
            elif key in ("max_concurrency",):
                values[key] = _positive_number(key, value, int)
            elif key == "baseline_dependencies":
                if not isinstance(value, Mapping):
                    raise ConfigError("baseline_dependencies must be a mapping of package -> version")
                values[key] = {str(k): str(v) for k, v in value.items()}
            elif key in ("base_runtime_packages", "substitutions"):
                if isinstance(value, str) or not isinstance(value, (list, tuple)):
                    raise ConfigError(f"{key} must be a list of strings")
                values[key] = tuple(str(v) for v in value)
            else:
                if not isinstance(value, str):
                    raise ConfigError(f"{key} must be a string")
                values[key] = value
        return cls(**values)


def _positive_number(key: str, value: Any, kind):
    try:
        number = kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number") from exc
    if number <= 0:
        raise ConfigError(f"{key} must be positive")
    return number


def load_config(path: Optional[str] = None) -> EngineConfig:
    """Load engine configuration from a YAML or JSON file.

    Args:
        path: Config file path. When None, defaults are returned.

    Returns:
        EngineConfig with file values applied over the defaults.
    """
    if not path:
        return EngineConfig()

    if not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.endswith(".json"):
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a mapping")
    section = data.get(CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{CONFIG_SECTION}' section in {path} must be a mapping")

    config = EngineConfig.from_mapping(section)
    logger.debug("Loaded configuration from %s", path)
    return config

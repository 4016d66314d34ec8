"""Configuration management for CAS Overlay."""

import json
import os
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from . import CONFIG_FILE, RESOURCES_DIR
from .errors import ConfigError

DEFAULT_MAIN_CLASS = "org.apereo.cas.web.CasWebApplication"
FEATURES = "features"


class FeatureLists:
    """Named sets of values that can be appended to by name."""

    def __init__(self, lists: dict[str, set[str]] | None = None):
        self._lists: dict[str, set[str]] = lists if lists is not None else {}

    def append(self, name: str, *values: str) -> set[str]:
        """Add values to the named set, creating it if needed."""
        target = self._lists.setdefault(name, set())
        target.update(values)
        return target

    def get(self, name: str) -> set[str]:
        return self._lists.get(name, set())

    def names(self) -> list[str]:
        return sorted(self._lists)

    def __contains__(self, name: str) -> bool:
        return name in self._lists


class CasConfig(BaseModel):
    """Configuration for a CAS overlay project."""

    version: str | None = None
    features: set[str] = Field(default_factory=set)
    resources_dir: str = RESOURCES_DIR
    artifact_dirs: list[str] = Field(default_factory=list)
    maven_local: str = "~/.m2/repository"
    main_class: str = DEFAULT_MAIN_CLASS
    extra_repositories: list[str] = Field(default_factory=list)

    def feature_lists(self) -> FeatureLists:
        """View of the appendable collections, backed by this config."""
        return FeatureLists({FEATURES: self.features})

    def append(self, name: str, *values: str) -> set[str]:
        """Append values to the collection called name."""
        lists = self.feature_lists()
        if name not in lists:
            raise ConfigError(f"Unknown collection '{name}'")
        return lists.append(name, *values)

    def sorted_features(self) -> list[str]:
        return sorted(self.features)


def get_config_path(project_root: Path) -> Path:
    """Get the config file path."""
    return project_root / CONFIG_FILE


def load_config(project_root: Path, apply_env: bool = True) -> CasConfig:
    """Load configuration from the project's config file.

    Falls back to defaults if file doesn't exist.
    Environment variables override config values when apply_env is True.
    """
    config_path = get_config_path(project_root)

    try:
        if config_path.exists():
            with open(config_path) as f:
                data = json.load(f)
            config = CasConfig.model_validate(data)
        else:
            config = CasConfig()
    except json.JSONDecodeError as e:
        raise ConfigError(f"{config_path} is not valid JSON: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}:\n{e}") from e

    if not apply_env:
        return config

    # Apply environment variable overrides
    return _apply_env_overrides(config)


def save_config(config: CasConfig, project_root: Path) -> None:
    """Save configuration to the project's config file."""
    config_path = get_config_path(project_root)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump()
    data[FEATURES] = config.sorted_features()
    with open(config_path, "w") as f:
        json.dump(data, f, indent=2)


def create_default_config(
    version: str | None = None,
    features: Iterable[str] = (),
) -> CasConfig:
    """Create a default configuration for the given CAS version."""
    config = CasConfig(version=version)
    config.append(FEATURES, *features)
    return config


def require_version(config: CasConfig) -> str:
    """Return the configured CAS version or fail."""
    if not config.version:
        raise ConfigError(
            "No CAS version configured. Set 'version' in cas.json or CAS_VERSION."
        )
    return config.version


def resources_path(config: CasConfig, project_root: Path) -> Path:
    """Absolute path of the local resource tree."""
    return project_root / config.resources_dir


def _apply_env_overrides(config: CasConfig) -> CasConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    # CAS_VERSION
    if version := os.environ.get("CAS_VERSION"):
        data["version"] = version

    # CAS_FEATURES (comma-separated, added to the configured ones)
    if features := os.environ.get("CAS_FEATURES"):
        extra = {name.strip() for name in features.split(",") if name.strip()}
        data[FEATURES] = set(data[FEATURES]) | extra

    return CasConfig.model_validate(data)

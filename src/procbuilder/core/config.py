"""Configuration of builder defaults.

Precedence:
1. Environment variables (highest)
2. Project config (.procbuilder/config.json)
3. User profile (~/.procbuilder/profiles/<name>.json)
4. Defaults (lowest)
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from procbuilder.core.exceptions import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARN", "WARNING", "ERROR")


@dataclass
class BuilderConfig:
    """Defaults applied to builders created through the factory.

    env holds overrides with the same meaning as ProcessBuilder.env():
    a string value forces the variable, None forces its removal.
    """

    env: dict[str, str | None] = field(default_factory=dict)
    cwd: str | None = None
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not isinstance(self.env, dict):
            raise ConfigurationError(
                f"env must be an object of overrides, got {type(self.env).__name__}",
                key="env",
                reason="type",
            )
        if self.cwd is not None and not isinstance(self.cwd, str):
            raise ConfigurationError(
                f"cwd must be a string or null, got {type(self.cwd).__name__}",
                key="cwd",
                reason="type",
            )
        if not isinstance(self.log_level, str):
            raise ConfigurationError(
                f"log_level must be a string, got {type(self.log_level).__name__}",
                key="log_level",
                reason="type",
            )
        for key, value in self.env.items():
            if not isinstance(key, str) or not key or "=" in key or "\0" in key:
                raise ConfigurationError(
                    f"Invalid environment variable name: {key!r}", key="env", reason="name"
                )
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(
                    f"Environment override for {key} must be a string or null, got {value!r}",
                    key="env",
                    reason="value",
                )
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(
                f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level}",
                key="log_level",
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BuilderConfig":
        """Create config from dictionary, ignoring unknown keys."""
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)


def _load_json_config(path: Path, label: str) -> BuilderConfig:
    try:
        with path.open() as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {label}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to load {label}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a JSON object in {label}")
    return BuilderConfig.from_dict(data)


def load_user_config(profile_name: str = "default") -> BuilderConfig:
    """Load user configuration from ~/.procbuilder/profiles/<name>.json.

    Returns:
        BuilderConfig loaded from profile, or default config if not found

    Raises:
        ConfigurationError: If profile file is invalid
    """
    profile_path = Path.home() / ".procbuilder" / "profiles" / f"{profile_name}.json"

    if not profile_path.exists():
        return BuilderConfig()

    return _load_json_config(profile_path, f"profile {profile_name}")


def load_project_config(project_root: Path | None = None) -> BuilderConfig | None:
    """Load project-specific configuration from .procbuilder/config.json.

    Args:
        project_root: Directory containing .procbuilder/ (default: current directory)

    Returns:
        BuilderConfig if config file exists, None otherwise
    """
    if project_root is None:
        project_root = Path.cwd()

    config_path = project_root / ".procbuilder" / "config.json"

    if not config_path.exists():
        return None

    return _load_json_config(config_path, "project config")


def load_env_overrides() -> dict[str, Any]:
    """Load configuration overrides from environment variables.

    Supported environment variables:
    - PROCBUILDER_CWD: Default working directory for new builders
    - PROCBUILDER_LOG_LEVEL: Log level

    Returns:
        Dictionary of configuration overrides
    """
    overrides: dict[str, Any] = {}

    if cwd := os.getenv("PROCBUILDER_CWD"):
        overrides["cwd"] = cwd

    if log_level := os.getenv("PROCBUILDER_LOG_LEVEL"):
        overrides["log_level"] = log_level

    return overrides


def merge_configs(
    base: BuilderConfig,
    project: BuilderConfig | None = None,
    env_overrides: dict[str, Any] | None = None,
) -> BuilderConfig:
    """Merge configurations with precedence: env > project > base.

    The env override maps are merged key by key rather than replaced.
    """
    merged = base.to_dict()
    defaults = BuilderConfig().to_dict()

    if project:
        for key, value in project.to_dict().items():
            if key == "env":
                merged["env"].update(value)
            elif value != defaults.get(key):
                merged[key] = value

    if env_overrides:
        for key, value in env_overrides.items():
            merged[key] = value

    return BuilderConfig.from_dict(merged)


def load_config(profile_name: str = "default", project_root: Path | None = None) -> BuilderConfig:
    """Load and merge all configuration sources.

    Raises:
        ConfigurationError: If any config source is invalid
    """
    base_config = load_user_config(profile_name)
    project_config = load_project_config(project_root)
    env_overrides = load_env_overrides()

    return merge_configs(base_config, project_config, env_overrides)

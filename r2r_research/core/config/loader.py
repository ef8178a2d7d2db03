"""Configuration loader with multi-level hierarchy."""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from ..models.settings import ResearchSettings

# Load environment variables from .env file
load_dotenv()

ENV_PREFIX = "R2R_RESEARCH_"

# Environment variable -> dotted config path
ENV_OVERRIDES: dict[str, str] = {
    "R2R_RESEARCH_BASE_URL": "base_url",
    "R2R_RESEARCH_API_KEY": "api_key",
    "R2R_RESEARCH_DEFAULT_LIMIT": "default_limit",
    "R2R_RESEARCH_TIMEOUT": "timeout",
    "R2R_RESEARCH_MAX_RETRIES": "retry.max_attempts",
    "R2R_RESEARCH_RETRY_BACKOFF": "retry.backoff",
    "R2R_RESEARCH_MIN_RESULTS": "search.min_results",
    "R2R_RESEARCH_FALLBACK": "search.fallback_to_universal",
    "R2R_RESEARCH_LOG_LEVEL": "logging.level",
    "R2R_RESEARCH_LOG_FORMAT": "logging.format",
    "R2R_RESEARCH_LOG_FILE": "logging.file",
}

DEFAULT_CONFIG: dict[str, Any] = ResearchSettings().model_dump(mode="json")


class ConfigLoader:
    """Load and merge configuration from multiple sources.

    Hierarchy (later overrides earlier):
    1. Built-in defaults
    2. Default config (config/default.yaml)
    3. Environment config (config/environments/{env}.yaml)
    4. Explicit config file (R2R_RESEARCH_CONFIG) [optional]
    5. Environment variables (R2R_RESEARCH_*)
    6. Programmatic overrides (CLI options) [optional]
    """

    def __init__(self, config_dir: Path | str | None = None):
        """Initialize config loader.

        Args:
            config_dir: Configuration directory (defaults to ./config at the project root)
        """
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent.parent / "config"
        self.config_dir = Path(config_dir)

    def load(self, overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """Load configuration with full hierarchy.

        Args:
            overrides: Values that win over every other layer. Keys may be
                dotted paths (``"logging.level"``); None values are skipped.

        Returns:
            Merged configuration dictionary
        """
        config = self._deep_merge({}, DEFAULT_CONFIG)
        config = self._deep_merge(config, self._load_yaml(self.config_dir / "default.yaml"))

        env = os.getenv(f"{ENV_PREFIX}ENV", "development")
        env_config_path = self.config_dir / f"environments/{env}.yaml"
        if env_config_path.exists():
            config = self._deep_merge(config, self._load_yaml(env_config_path))

        explicit = os.getenv(f"{ENV_PREFIX}CONFIG")
        if explicit:
            explicit_path = Path(explicit).expanduser()
            if not explicit_path.exists():
                raise ConfigurationError(
                    f"Config file not found: {explicit_path}",
                    details={"path": str(explicit_path)},
                )
            config = self._deep_merge(config, self._load_yaml(explicit_path))

        config = self._apply_env_overrides(config)

        for dotted, value in (overrides or {}).items():
            if value is not None:
                self._set_nested(config, dotted.split("."), value)

        return config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load YAML file.

        Args:
            path: Path to YAML file

        Returns:
            Parsed YAML as dictionary (empty when the file is missing)

        Raises:
            ConfigurationError: If the file is not valid YAML or not a mapping
        """
        if not path.exists():
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}", details={"path": str(path)}) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigurationError(
                f"Config file {path} must contain a mapping",
                details={"path": str(path)},
            )
        return content

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries.

        Args:
            base: Base dictionary
            override: Override dictionary

        Returns:
            Merged dictionary (neither input is modified)
        """
        result = dict(base)
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            elif isinstance(value, dict):
                result[key] = self._deep_merge({}, value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: dict[str, Any]) -> dict[str, Any]:
        """Override config with R2R_RESEARCH_* environment variables.

        Empty variables are ignored so that ``R2R_RESEARCH_API_KEY=`` in a
        .env file does not clobber a key from YAML.

        Args:
            config: Configuration dictionary

        Returns:
            Config with environment variable overrides
        """
        for env_name, dotted in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None or value == "":
                continue
            self._set_nested(config, dotted.split("."), value)

        return config

    def _set_nested(self, config: dict[str, Any], path: list[str], value: Any) -> None:
        """Set nested configuration value.

        Args:
            config: Configuration dictionary
            path: Path to nested key (e.g., ["logging", "level"])
            value: Value to set
        """
        current = config
        for key in path[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]
        current[path[-1]] = value


def load_settings(
    overrides: dict[str, Any] | None = None,
    config_dir: Path | str | None = None,
) -> ResearchSettings:
    """Load and validate settings.

    Type conversion of environment strings ("25", "false") is left to the
    pydantic models.

    Args:
        overrides: Highest-priority values, usually from CLI options
        config_dir: Configuration directory override

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If any layer is unreadable or the merged values are invalid
    """
    loader = ConfigLoader(config_dir)
    config = loader.load(overrides=overrides)
    try:
        return ResearchSettings.model_validate(config)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ConfigurationError(
            "Invalid configuration: " + "; ".join(problems),
            details={"errors": problems},
        ) from e

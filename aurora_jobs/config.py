"""Configuration management for aurora-jobs.

This module handles loading builder defaults from multiple sources with the following priority:
1. CLI arguments (handled by caller)
2. Environment variables (AURORA_JOBS_PORT_NAMESPACE, AURORA_JOBS_TIER, AURORA_JOBS_EXECUTOR)
3. TOML configuration file
4. Default values

Configuration files are loaded from:
- aurora-jobs.toml in current working directory
- ~/.aurora-jobs/config.toml

Environment selection via AURORA_JOBS_ENV (devel, test, staging, prod).
Defaults to devel if not set. The selected environment is also the default
environment of jobs created through `Config.new_job()`.
"""

import os
import tomllib
from pathlib import Path
from typing import Optional

from loguru import logger

from aurora_jobs.jobs.builder import AuroraJob, DEFAULT_PORT_NAMESPACE


# Valid environment names
VALID_ENVIRONMENTS = {"devel", "test", "staging", "prod"}
DEFAULT_ENVIRONMENT = "devel"

# Keys accepted in [defaults] and [environments.<env>] sections
CONFIG_KEYS = ("role", "port_namespace", "tier", "executor_name")


class Config:
    """Configuration manager for aurora-jobs."""

    def __init__(self):
        """Initialize configuration with defaults."""
        self.environment: str = DEFAULT_ENVIRONMENT
        self.role: Optional[str] = None
        self.port_namespace: str = DEFAULT_PORT_NAMESPACE
        self.tier: Optional[str] = None
        self.executor_name: Optional[str] = None
        self.config_file: Optional[Path] = None
        self._config_data: dict = {}

    def load(self) -> None:
        """Load configuration from all sources.

        Priority order:
        1. Environment variables
        2. TOML configuration file ([environments.<env>] over [defaults])
        3. Default values
        """
        self.environment = self._get_environment()

        config_file = self._find_config_file()
        if config_file:
            self._load_config_file(config_file)

        self._apply_env_overrides()

    def _get_environment(self) -> str:
        """Get the current environment from AURORA_JOBS_ENV.

        Returns:
            Environment name. Defaults to devel if not set or invalid.
        """
        env = os.getenv("AURORA_JOBS_ENV", DEFAULT_ENVIRONMENT).lower()
        if env not in VALID_ENVIRONMENTS:
            logger.warning(
                f"Invalid AURORA_JOBS_ENV value '{env}'. "
                f"Valid values are: {', '.join(sorted(VALID_ENVIRONMENTS))}. "
                f"Defaulting to '{DEFAULT_ENVIRONMENT}'."
            )
            env = DEFAULT_ENVIRONMENT
        return env

    def _find_config_file(self) -> Optional[Path]:
        """Find the configuration file.

        Searches in order:
        1. aurora-jobs.toml in current working directory
        2. ~/.aurora-jobs/config.toml

        Returns:
            Path to config file if found, None otherwise.
        """
        cwd_config = Path.cwd() / "aurora-jobs.toml"
        if cwd_config.exists():
            logger.info(f"Loading config from {cwd_config}")
            return cwd_config

        home_config = self._home_config_path()
        if home_config.exists():
            logger.info(f"Loading config from {home_config}")
            return home_config

        logger.debug("No config file found, using defaults")
        return None

    def _home_config_path(self) -> Path:
        return Path.home() / ".aurora-jobs" / "config.toml"

    def _load_config_file(self, config_file: Path) -> None:
        """Load configuration from TOML file.

        Args:
            config_file: Path to the TOML configuration file.
        """
        try:
            with open(config_file, "rb") as f:
                self._config_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning(
                f"Failed to load config file {config_file}: {e}. Using defaults."
            )
            return

        self.config_file = config_file
        self._apply_section(self._config_data.get("defaults", {}))

        environments = self._config_data.get("environments", {})
        env_config = environments.get(self.environment, {})
        if not env_config:
            logger.debug(
                f"No configuration found for environment '{self.environment}' "
                f"in {config_file}"
            )
            return
        self._apply_section(env_config)

    def _apply_section(self, section: dict) -> None:
        for key in CONFIG_KEYS:
            if key in section:
                setattr(self, key, section[key])
                logger.debug(f"Loaded {key} from config: {section[key]}")

        unknown = set(section) - set(CONFIG_KEYS)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides.

        Environment variables take precedence over config file settings
        but are overridden by CLI arguments (handled by caller).
        """
        namespace_override = os.getenv("AURORA_JOBS_PORT_NAMESPACE")
        if namespace_override:
            self.port_namespace = namespace_override
            logger.info(f"Overriding port_namespace from env: {self.port_namespace}")

        tier_override = os.getenv("AURORA_JOBS_TIER")
        if tier_override:
            self.tier = tier_override
            logger.info(f"Overriding tier from env: {self.tier}")

        executor_override = os.getenv("AURORA_JOBS_EXECUTOR")
        if executor_override:
            self.executor_name = executor_override
            logger.info(f"Overriding executor_name from env: {self.executor_name}")

    def new_job(self) -> AuroraJob:
        """Create a builder pre-populated with the configured defaults."""
        job = AuroraJob(port_namespace=self.port_namespace)
        job.set_environment(self.environment)
        if self.role:
            job.set_role(self.role)
        if self.tier:
            job.set_tier(self.tier)
        if self.executor_name:
            job.set_executor_name(self.executor_name)
        return job

    def to_dict(self) -> dict:
        return {
            "environment": self.environment,
            "role": self.role,
            "port_namespace": self.port_namespace,
            "tier": self.tier,
            "executor_name": self.executor_name,
            "config_file": str(self.config_file) if self.config_file else None,
        }


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Loads configuration on first call.

    Returns:
        Global Config instance.
    """
    global _config
    if _config is None:
        _config = Config()
        _config.load()
    return _config


def reload_config() -> Config:
    """Reload configuration from sources.

    Useful for testing or runtime reconfiguration.

    Returns:
        Reloaded Config instance.
    """
    global _config
    _config = Config()
    _config.load()
    return _config

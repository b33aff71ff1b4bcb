"""Configuration management for slashbot.

Loads layered YAML settings and environment variables into a typed
Config object:

1. ``<config_dir>/.env`` is loaded into the process environment.
2. ``<config_dir>/base.yaml`` provides shared defaults.
3. ``<config_dir>/<env>.yaml`` is deep-merged over the base, where
   ``env`` comes from ``SLASHBOT_ENV`` (default ``local``).
4. ``SLASHBOT_*`` environment variables override individual keys.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import copy
import os
from pathlib import Path
from typing import Optional

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = structlog.get_logger("slashbot.bot")

ENV_PREFIX = "SLASHBOT_"

# Env var suffix -> dotted settings key
_ENV_OVERRIDES = {
    "HOST": "host",
    "PORT": "port",
    "WEBHOOK_PATH": "webhook_path",
    "REPLY_TIMEOUT": "reply_timeout",
    "SLACK_SIGNING_SECRET": "slack.signing_secret",
    "LOG_DIR": "log_dir",
    "LOG_LEVEL": "logging.level",
}

# Fixed by the platform's signing scheme
REPLAY_WINDOW_SECONDS = 300


def _deep_merge(base: dict, overlay: dict) -> dict:
    """Return ``base`` with ``overlay`` merged in; nested dicts merge recursively."""
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _set_dotted(settings: dict, dotted_key: str, value) -> None:
    node = settings
    *parents, leaf = dotted_key.split(".")
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[leaf] = value


class Config:
    """Central configuration manager for slashbot.

    Read-only after __init__, so a single instance is safely shared by
    every concurrent request.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
        env: Environment name selecting the overlay file. Defaults to
            ``SLASHBOT_ENV`` or ``local``.
    """

    def __init__(self, config_dir: Optional[Path] = None, env: Optional[str] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)

        # Load environment variables
        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.env = env or os.environ.get(f"{ENV_PREFIX}ENV") or "local"

        settings = self._load_yaml("base.yaml")
        settings = _deep_merge(settings, self._load_yaml(f"{self.env}.yaml"))
        self.settings = self._apply_env_overrides(settings)

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"{filename} must contain a mapping", setting_name=filename
                )
            return data
        return {}

    @staticmethod
    def _apply_env_overrides(settings: dict) -> dict:
        for suffix, dotted_key in _ENV_OVERRIDES.items():
            value = os.environ.get(ENV_PREFIX + suffix)
            if value:
                _set_dotted(settings, dotted_key, value)
        return settings

    def validate(self):
        """Validate critical settings at startup.

        Raises:
            ConfigurationError: If the signing secret is missing or the
                port is not a valid TCP port.
        """
        if not self.signing_secret:
            raise ConfigurationError(
                "Slack signing secret is not configured",
                setting_name="slack.signing_secret",
            )
        if not 1 <= self.port <= 65535:
            raise ConfigurationError(
                f"Port {self.port} is outside 1-65535", setting_name="port"
            )
        if not self.webhook_path.startswith("/"):
            raise ConfigurationError(
                "webhook_path must start with '/'", setting_name="webhook_path"
            )
        if self.reply_timeout <= 0:
            logger.warning(
                "config_invalid_value",
                key="reply_timeout",
                value=self.reply_timeout,
                using=10.0,
            )

    @property
    def host(self) -> str:
        """Interface the HTTP server binds to."""
        return str(self.settings.get("host", "0.0.0.0"))

    @property
    def port(self) -> int:
        """TCP port the HTTP server listens on (default 8080)."""
        value = self.settings.get("port", 8080)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Port {value!r} is not an integer", setting_name="port"
            ) from e

    @property
    def webhook_path(self) -> str:
        """Route the platform posts slash commands to."""
        return str(self.settings.get("webhook_path", "/"))

    @property
    def signing_secret(self) -> str:
        """Slack signing secret. ``SLACK_SIGNING_SECRET`` env var is a fallback."""
        slack_config = self.settings.get("slack") or {}
        return (
            slack_config.get("signing_secret")
            or os.environ.get("SLACK_SIGNING_SECRET", "")
        )

    @property
    def reply_timeout(self) -> float:
        """Total timeout in seconds for the outbound reply call (default 10)."""
        value = self.settings.get("reply_timeout", 10.0)
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            return 10.0
        return timeout if timeout > 0 else 10.0

    @property
    def replay_window(self) -> int:
        """Maximum accepted clock skew for signed requests, in seconds."""
        return REPLAY_WINDOW_SECONDS

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO). Controls console and combined file."""
        log_config = self.settings.get("logging", {})
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"security": "DEBUG"}."""
        log_config = self.settings.get("logging", {})
        return log_config.get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config

"""
Stagehand - Configuration

Centralized configuration for lifecycle sessions, logging and tracing.
Uses environment variables (optionally from a .env file) with sensible
defaults.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from core.errors import LifeCycleConfigError
from observability.logging import LoggingConfig
from observability.tracing import TracingConfig

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LifeCycleLogLevel(Enum):
    """Level at which session transitions are logged."""
    INFO = "info"
    DEBUG = "debug"


def _parse_log_level(value: str) -> LifeCycleLogLevel:
    try:
        return LifeCycleLogLevel(value.lower())
    except ValueError:
        raise LifeCycleConfigError(
            f"Unsupported lifecycle log level: {value!r}",
            config_key="STAGEHAND_LIFECYCLE_LOG_LEVEL",
            actual_value=value,
        ) from None


@dataclass
class LifeCycleConfig:
    """Lifecycle session configuration."""
    session_name: str = field(default_factory=lambda: os.getenv("STAGEHAND_SESSION_NAME", "session"))
    show_lifecycle_log: bool = field(
        default_factory=lambda: os.getenv("STAGEHAND_SHOW_LIFECYCLE_LOG", "true").lower() == "true"
    )
    lifecycle_log_level: LifeCycleLogLevel = field(
        default_factory=lambda: _parse_log_level(os.getenv("STAGEHAND_LIFECYCLE_LOG_LEVEL", "info"))
    )


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    env: Environment = field(default_factory=lambda: Environment(os.getenv("ENVIRONMENT", "development")))

    # Sub-configurations
    lifecycle: LifeCycleConfig = field(default_factory=LifeCycleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for diagnostics."""
        return {
            "env": self.env.value,
            "lifecycle": {
                "session_name": self.lifecycle.session_name,
                "show_lifecycle_log": self.lifecycle.show_lifecycle_log,
                "lifecycle_log_level": self.lifecycle.lifecycle_log_level.value,
            },
            "logging": {
                "level": self.logging.level,
                "json_format": self.logging.json_format,
            },
            "tracing": {
                "enabled": self.tracing.enabled,
                "otlp_endpoint": self.tracing.otlp_endpoint,
                "console_export": self.tracing.console_export,
            },
        }


# Singleton configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config

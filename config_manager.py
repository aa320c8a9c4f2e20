"""
Configuration management for the Task Analytics system.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class TrackingConfig:
    """Event tracking client configuration settings."""
    endpoint_url: str
    timeout: float
    default_user_id: str
    session_prefix: str
    enabled: bool
    max_workers: int = 4


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "web_app_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        # Start with default config
        self._config = self._get_default_config()

        # Load base config from file
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    # Merge file config with defaults
                    self._merge_config(file_config)
            except (OSError, ValueError):
                # Keep default config if file is unreadable, not UTF-8 or not JSON
                pass

        # Override with environment variables
        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "tracking": {
                "endpoint_url": "http://localhost:22581/api/analytics/events",
                "timeout": 5.0,
                "default_user_id": "user-123",
                "session_prefix": "session",
                "enabled": True,
                "max_workers": 4
            },
            "app": {
                "host": "0.0.0.0",
                "port": 22581,
                "debug": False
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        if not isinstance(file_config, dict):
            return
        for section, values in file_config.items():
            if section in self._config:
                # Known sections only accept an object; anything else keeps the defaults
                if isinstance(values, dict):
                    self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # Tracking settings
        if os.getenv("ANALYTICS_ENDPOINT_URL"):
            self._config["tracking"]["endpoint_url"] = os.getenv("ANALYTICS_ENDPOINT_URL")

        if os.getenv("ANALYTICS_TIMEOUT"):
            self._config["tracking"]["timeout"] = float(os.getenv("ANALYTICS_TIMEOUT"))

        if os.getenv("ANALYTICS_DEFAULT_USER_ID"):
            self._config["tracking"]["default_user_id"] = os.getenv("ANALYTICS_DEFAULT_USER_ID")

        if os.getenv("ANALYTICS_SESSION_PREFIX"):
            self._config["tracking"]["session_prefix"] = os.getenv("ANALYTICS_SESSION_PREFIX")

        if os.getenv("ANALYTICS_ENABLED"):
            self._config["tracking"]["enabled"] = os.getenv("ANALYTICS_ENABLED").lower() == "true"

        if os.getenv("ANALYTICS_MAX_WORKERS"):
            self._config["tracking"]["max_workers"] = int(os.getenv("ANALYTICS_MAX_WORKERS"))

        # App settings
        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["app"]["port"] = int(os.getenv("APP_PORT"))

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = os.getenv("APP_DEBUG").lower() == "true"

    def get_tracking_config(self) -> TrackingConfig:
        """Get event tracking configuration."""
        tracking_config = self._config["tracking"]
        return TrackingConfig(
            endpoint_url=tracking_config["endpoint_url"],
            timeout=float(tracking_config["timeout"]),
            default_user_id=tracking_config["default_user_id"],
            session_prefix=tracking_config["session_prefix"],
            enabled=bool(tracking_config["enabled"]),
            max_workers=int(tracking_config["max_workers"])
        )

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=app_config["port"],
            debug=app_config["debug"]
        )

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_tracking_config() -> TrackingConfig:
    """Get event tracking configuration."""
    return config_manager.get_tracking_config()


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()

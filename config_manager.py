"""
Configuration management for the content recommendation service.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool


@dataclass
class PathsConfig:
    """Path configuration settings."""
    data_dir: str


@dataclass
class RecommendationConfig:
    """Recommendation engine configuration settings."""
    candidate_pool_size: int
    default_limit: int
    max_limit: int
    request_timeout_seconds: float
    decay_lambda: float
    unfollow_window_days: float
    max_per_category: int
    max_per_creator: int
    legacy_missing_duration: bool
    creator_fields: List[str] = field(default_factory=lambda: ["name"])
    weights: Dict[str, float] = field(default_factory=dict)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


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

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    self._merge_config(json.load(f))
            except json.JSONDecodeError as exc:
                logger.warning("Ignoring invalid config file %s: %s", self.config_file, exc)

        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app": {
                "host": "0.0.0.0",
                "port": 22581,
                "debug": False,
            },
            "paths": {
                "data_dir": "data",
            },
            "recommendations": {
                "candidate_pool_size": 500,
                "default_limit": 10,
                "max_limit": 50,
                "request_timeout_seconds": 10.0,
                "decay_lambda": 0.1,
                "unfollow_window_days": 30,
                "max_per_category": 3,
                "max_per_creator": 3,
                "legacy_missing_duration": False,
                "creator_fields": ["name"],
                "weights": {},
            },
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # App settings
        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["app"]["port"] = int(os.getenv("APP_PORT"))

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = _env_bool(os.getenv("APP_DEBUG"))

        # Paths
        if os.getenv("DATA_DIR"):
            self._config["paths"]["data_dir"] = os.getenv("DATA_DIR")

        # Recommendation settings
        reco = self._config["recommendations"]
        if os.getenv("RECO_CANDIDATE_POOL_SIZE"):
            reco["candidate_pool_size"] = int(os.getenv("RECO_CANDIDATE_POOL_SIZE"))

        if os.getenv("RECO_DEFAULT_LIMIT"):
            reco["default_limit"] = int(os.getenv("RECO_DEFAULT_LIMIT"))

        if os.getenv("RECO_MAX_LIMIT"):
            reco["max_limit"] = int(os.getenv("RECO_MAX_LIMIT"))

        if os.getenv("RECO_REQUEST_TIMEOUT"):
            reco["request_timeout_seconds"] = float(os.getenv("RECO_REQUEST_TIMEOUT"))

        if os.getenv("RECO_LEGACY_MISSING_DURATION"):
            reco["legacy_missing_duration"] = _env_bool(os.getenv("RECO_LEGACY_MISSING_DURATION"))

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=int(app_config["port"]),
            debug=bool(app_config["debug"]),
        )

    def get_paths_config(self) -> PathsConfig:
        """Get paths configuration."""
        return PathsConfig(data_dir=str(self._config["paths"]["data_dir"]))

    def get_recommendation_config(self) -> RecommendationConfig:
        """Get recommendation engine configuration."""
        reco = self._config["recommendations"]
        default_limit = int(reco["default_limit"])
        max_limit = int(reco["max_limit"])
        if default_limit < 1 or max_limit < default_limit:
            raise ValueError(
                f"Invalid recommendation limits: default_limit={default_limit}, max_limit={max_limit}"
            )
        return RecommendationConfig(
            candidate_pool_size=int(reco["candidate_pool_size"]),
            default_limit=default_limit,
            max_limit=max_limit,
            request_timeout_seconds=float(reco["request_timeout_seconds"]),
            decay_lambda=float(reco["decay_lambda"]),
            unfollow_window_days=float(reco["unfollow_window_days"]),
            max_per_category=int(reco["max_per_category"]),
            max_per_creator=int(reco["max_per_creator"]),
            legacy_missing_duration=bool(reco["legacy_missing_duration"]),
            creator_fields=list(reco.get("creator_fields") or ["name"]),
            weights={str(k): float(v) for k, v in (reco.get("weights") or {}).items()},
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


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def get_paths_config() -> PathsConfig:
    """Get paths configuration."""
    return config_manager.get_paths_config()


def get_recommendation_config() -> RecommendationConfig:
    """Get recommendation engine configuration."""
    return config_manager.get_recommendation_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()

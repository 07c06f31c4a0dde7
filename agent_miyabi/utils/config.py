"""
Configuration management for Agent Miyabi.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field

from .logging import get_logger

logger = get_logger(__name__)


class OrchestrationConfig(BaseModel):
    """Configuration for the agent orchestrator."""
    enable_logging: bool = Field(default=True)
    max_concurrent_tasks: int = Field(default=5, ge=1, le=100)
    continue_on_failure: bool = Field(default=True)
    shutdown_drain_timeout_seconds: float = Field(default=30.0, ge=0.0, le=3600.0)


class SystemConfig(BaseModel):
    """Main system configuration."""
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    json_logging: bool = Field(default=False)

    orchestration: OrchestrationConfig = Field(default_factory=OrchestrationConfig)


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if not value:
        return None
    return value.lower() in ("1", "true", "yes", "on")


def load_config_from_env() -> SystemConfig:
    """
    Load configuration from environment variables.

    Returns:
        SystemConfig: Configuration object with values from environment
    """
    config_data: Dict[str, Any] = {}

    # System settings
    if _env_flag("DEBUG") is not None:
        config_data["debug"] = _env_flag("DEBUG")

    if os.getenv("LOG_LEVEL"):
        config_data["log_level"] = os.getenv("LOG_LEVEL")

    if _env_flag("JSON_LOGGING") is not None:
        config_data["json_logging"] = _env_flag("JSON_LOGGING")

    # Orchestrator settings
    orchestration_config: Dict[str, Any] = {}
    if _env_flag("ORCHESTRATOR_ENABLE_LOGGING") is not None:
        orchestration_config["enable_logging"] = _env_flag("ORCHESTRATOR_ENABLE_LOGGING")

    if os.getenv("ORCHESTRATOR_MAX_CONCURRENT_TASKS"):
        orchestration_config["max_concurrent_tasks"] = int(os.getenv("ORCHESTRATOR_MAX_CONCURRENT_TASKS"))

    if _env_flag("ORCHESTRATOR_CONTINUE_ON_FAILURE") is not None:
        orchestration_config["continue_on_failure"] = _env_flag("ORCHESTRATOR_CONTINUE_ON_FAILURE")

    if os.getenv("ORCHESTRATOR_DRAIN_TIMEOUT"):
        orchestration_config["shutdown_drain_timeout_seconds"] = float(os.getenv("ORCHESTRATOR_DRAIN_TIMEOUT"))

    if orchestration_config:
        config_data["orchestration"] = orchestration_config

    return SystemConfig(**config_data)


def load_config_from_file(config_path: Optional[Path] = None) -> SystemConfig:
    """
    Load configuration from a JSON or YAML file.

    A missing or unreadable file yields the default configuration.

    Args:
        config_path: Path to configuration file

    Returns:
        SystemConfig: Configuration object
    """
    if config_path is None:
        config_path = Path("miyabi.yml")
    config_path = Path(config_path)

    if not config_path.exists():
        return SystemConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix in (".yml", ".yaml"):
                config_data = yaml.safe_load(f) or {}
            else:
                config_data = json.load(f)
        return SystemConfig(**config_data)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.warning("Could not load config", path=str(config_path), error=str(e))
        return SystemConfig()


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# Global configuration instance
_config: Optional[SystemConfig] = None


def get_config() -> SystemConfig:
    """
    Get the global configuration instance.

    File values are loaded first and environment variables override them.

    Returns:
        SystemConfig: Global configuration
    """
    global _config
    if _config is None:
        _config = load_config_from_file()
        env_config = load_config_from_env()

        overrides = env_config.model_dump(exclude_unset=True)
        if overrides:
            _config = SystemConfig(**_merge(_config.model_dump(), overrides))

    return _config


def set_config(config: Optional[SystemConfig]) -> None:
    """
    Set the global configuration instance.

    Passing ``None`` clears it so the next ``get_config`` reloads.

    Args:
        config: Configuration to set as global
    """
    global _config
    _config = config

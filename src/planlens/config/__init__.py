"""Configuration module: load sensitivity rules and analysis settings."""

import os
from typing import Optional
from pydantic import ValidationError
from ..utils.errors import ConfigError
from ..utils.logging import get_logger
from .manager import load_config_tree
from .models import PlanLensConfig, PlanSettings, GroupingSettings, LimitSettings

logger = get_logger("config")

EXPAND_ALL_ENV = "PLANLENS_EXPAND_ALL"


def load_config(config_path: Optional[str] = None) -> PlanLensConfig:
    """
    Load and validate configuration.
    
    Args:
        config_path: Path to config YAML file. If None, uses defaults plus user/project files
        
    Returns:
        Validated PlanLensConfig
        
    Raises:
        ConfigError: If config cannot be loaded or has invalid settings
    """
    tree = load_config_tree(config_path)
    
    try:
        config = PlanLensConfig(**tree)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}")
    
    if _env_flag(EXPAND_ALL_ENV):
        logger.debug(f"{EXPAND_ALL_ENV} set, forcing expand_all")
        config.plan.expand_all = True
    
    return config


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


__all__ = [
    "load_config",
    "PlanLensConfig",
    "PlanSettings",
    "GroupingSettings",
    "LimitSettings",
]

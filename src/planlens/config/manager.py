"""Two-tier configuration manager (defaults + user + project override)."""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from .paths import get_default_config_path, get_user_config_path, get_project_config_path
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("config.manager")


def load_config_tree(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the raw config tree.
    
    Packaged defaults are always the base. An explicit ``config_path`` is
    merged on top; otherwise the user config and then the project config are.
    
    Args:
        config_path: Optional explicit config file
        
    Returns:
        Configuration dictionary
        
    Raises:
        ConfigError: If the explicit file is missing or any file is invalid YAML
    """
    config = _read_yaml(get_default_config_path())
    
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        _deep_merge(config, _read_yaml(path))
        logger.info(f"Loaded configuration from {path}")
        return config
    
    user_config_path = get_user_config_path()
    if user_config_path.exists():
        _deep_merge(config, _read_yaml(user_config_path))
        logger.info(f"Loaded user config from {user_config_path}")
    
    project_config_path = get_project_config_path()
    if project_config_path:
        _deep_merge(config, _read_yaml(project_config_path))
        logger.info(f"Loaded project config from {project_config_path}")
    
    return config


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read one YAML file; an empty file is an empty mapping."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading config file {path}: {e}")
    
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a dictionary: {path}")
    return data


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value

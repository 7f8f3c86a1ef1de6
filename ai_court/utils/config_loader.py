# ai_court/utils/config_loader.py
"""Configuration loading utilities."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Mapping
from dotenv import load_dotenv
from loguru import logger

from ..config.schemas import CourtConfig, ProviderConfig

def load_yaml_file(file_path: Path) -> Dict[str, Any]:
    """Load a single YAML file."""
    if file_path.exists():
        with open(file_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    return {}

def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from a YAML file, or the first default location that exists."""
    if config_path:
        path = Path(config_path)
    else:
        possible_paths = [
            Path.cwd() / "ai_court.yaml",
            Path.cwd() / "config.yaml",
            Path.home() / ".config" / "ai_court" / "config.yaml",
        ]

        for path in possible_paths:
            if path.exists():
                break
        else:
            logger.debug("No config file found, using defaults")
            return {}

    if path.exists() and path.suffix in ['.yaml', '.yml']:
        logger.info(f"Loading configuration from {path}")
        return load_yaml_file(path)

    logger.warning(f"Config path {path} not found, using defaults")
    return {}

def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result

def env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Translate environment variables into a config fragment."""
    overrides: Dict[str, Any] = {}
    provider: Dict[str, Any] = {}

    api_base = environ.get("AI_COURT_API_BASE")
    if api_base:
        provider["endpoint"] = ProviderConfig.for_proxy(api_base).endpoint
    elif environ.get("OPENAI_API_KEY"):
        provider["api_key"] = environ["OPENAI_API_KEY"]

    if environ.get("AI_COURT_MODEL"):
        provider["model"] = environ["AI_COURT_MODEL"]

    if provider:
        overrides["provider"] = provider

    if environ.get("AI_COURT_LOG_LEVEL"):
        overrides["logging"] = {"level": environ["AI_COURT_LOG_LEVEL"]}

    return overrides

def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None
) -> CourtConfig:
    """Load and validate configuration.

    Precedence, lowest first: built-in defaults, YAML file, environment
    (``.env`` is read into the process environment unless ``environ`` is given).
    """
    if environ is None:
        load_dotenv(dotenv_path)
        environ = os.environ

    config_dict = merge_configs(load_config_file(config_path), env_overrides(environ))

    if not config_dict:
        logger.info("Using default configuration")
        return CourtConfig.default()

    try:
        default_dict = CourtConfig.default().model_dump()
        final_config = merge_configs(default_dict, config_dict)
        config = CourtConfig(**final_config)
        logger.success("Configuration loaded and validated successfully")
        return config
    except Exception as e:
        logger.error(f"Failed to validate configuration: {e}")
        logger.info("Falling back to default configuration")
        return CourtConfig.default()

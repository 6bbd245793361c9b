#!/usr/bin/env python3
"""
Configuration module for the shardflake ID generator.
"""

import os
import sys
from typing import Dict, Any, Optional
import yaml
import pytz
from pydantic_settings import BaseSettings, SettingsConfigDict
from loguru import logger

from shardflake.core.exceptions import InvalidConfiguration


CONFIG_SECTIONS = ("generator", "clock", "logging")


class Settings(BaseSettings):
    """Generator settings from environment variables."""

    # Generator layout
    generator_id: Optional[int] = None
    shard_count: Optional[int] = None

    # Logging configuration
    log_level: Optional[str] = None
    log_file: Optional[str] = None

    # Configuration file path
    config_path: str = "config/settings.yaml"

    # Timezone used for the clock offset (system local time when unset)
    timezone: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="SHARDFLAKE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


def load_yaml_config(file_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        file_path: Path to YAML configuration file

    Returns:
        Configuration dictionary
    """
    if not os.path.exists(file_path):
        logger.debug(f"Configuration file not found: {file_path}")
        return {}

    try:
        with open(file_path, "r") as f:
            file_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading configuration file: {str(e)}")
        return {}

    if not isinstance(file_config, dict):
        logger.error(f"Configuration file must contain a mapping: {file_path}")
        return {}
    return file_config


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration types.

    Range checks belong to the generator itself; this only rejects values
    the generator could never accept.

    Args:
        config: Configuration dictionary

    Returns:
        True if configuration is valid, False otherwise
    """
    for section in CONFIG_SECTIONS:
        if not isinstance(config.get(section, {}), dict):
            logger.error(f"Invalid {section} section: must be a mapping")
            return False

    generator_config = config.get("generator", {})
    generator_id = generator_config.get("generator_id")
    if generator_id is not None and (isinstance(generator_id, bool) or not isinstance(generator_id, int)):
        logger.error("Invalid generator_id: must be an integer")
        return False

    shard_count = generator_config.get("shard_count")
    if shard_count is not None and (isinstance(shard_count, bool) or not isinstance(shard_count, int)):
        logger.error("Invalid shard_count: must be an integer")
        return False

    if not isinstance(config.get("logging", {}).get("level", "INFO"), str):
        logger.error("Invalid logging level: must be a string")
        return False

    log_file = config.get("logging", {}).get("file")
    if log_file is not None and not isinstance(log_file, dict):
        logger.error("Invalid logging file section: must be a mapping")
        return False

    timezone_name = config.get("clock", {}).get("timezone")
    if timezone_name is not None and not isinstance(timezone_name, str):
        logger.error("Invalid clock timezone: must be a string")
        return False

    return True


def merge_configs(env_config: Settings, file_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge environment and file configurations.

    Args:
        env_config: Environment configuration
        file_config: File configuration

    Returns:
        Merged configuration
    """
    # Start with file configuration; empty YAML sections load as None
    merged_config = {**file_config}
    for section in CONFIG_SECTIONS:
        value = merged_config.get(section)
        if value is None:
            merged_config[section] = {}
        elif isinstance(value, dict):
            merged_config[section] = {**value}

    # Sections that are not mappings are left for validate_config to reject
    def section(name: str) -> Dict[str, Any]:
        value = merged_config[name]
        return value if isinstance(value, dict) else {}

    # Override with environment variables that were actually set
    for key, value in env_config.model_dump().items():
        if value is None:
            continue
        if key in ["generator_id", "shard_count"]:
            section("generator")[key] = value
        elif key == "log_level":
            section("logging")["level"] = value
        elif key == "log_file":
            logging_config = section("logging")
            if not isinstance(logging_config.get("file"), dict):
                logging_config["file"] = {}
            logging_config["file"]["path"] = value
        elif key == "timezone":
            section("clock")["timezone"] = value

    return merged_config


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Set up logging configuration.

    Args:
        config: Configuration dictionary
    """
    log_level = config.get("logging", {}).get("level", "INFO")

    # Remove default logger
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        level=log_level
    )

    # Add file logger if configured
    log_file = config.get("logging", {}).get("file") or {}
    if log_file.get("path"):
        logger.add(
            log_file.get("path"),
            level=log_level,
            rotation=log_file.get("max_size", "100MB"),
            retention=log_file.get("backup_count", 5),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"
        )


def load_config(configure_logging: bool = False) -> Dict[str, Any]:
    """
    Load generator configuration.

    Logging is only reconfigured when asked for; setup_logging replaces
    every loguru sink, including the host application's.

    Args:
        configure_logging: Replace the loguru sinks according to the configuration

    Returns:
        Configuration dictionary
    """
    # Load environment variables
    try:
        env_config = Settings()
    except ValueError as e:
        logger.error(f"Error loading environment variables: {str(e)}")
        raise InvalidConfiguration(f"Error loading environment variables: {str(e)}", "settings") from e

    # Load configuration file
    file_config = load_yaml_config(env_config.config_path)

    # Merge configurations
    config = merge_configs(env_config, file_config)

    # Validate configuration
    if not validate_config(config):
        raise InvalidConfiguration("Invalid configuration", "settings")

    if configure_logging:
        setup_logging(config)

    timezone_name = config.get("clock", {}).get("timezone")
    if timezone_name:
        try:
            pytz.timezone(timezone_name)
            logger.info(f"Clock timezone set to {timezone_name}")
        except pytz.exceptions.UnknownTimeZoneError:
            logger.error(f"Unknown timezone: {timezone_name}, using system local time instead")
            config["clock"]["timezone"] = None

    logger.info(f"Configuration loaded from {env_config.config_path}")

    return config


_config: Optional[Dict[str, Any]] = None


def get_config() -> Dict[str, Any]:
    """Get the process configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config(configure_logging=False)
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    global _config
    _config = None

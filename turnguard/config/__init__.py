"""Configuration module for turnguard."""

from turnguard.config.loader import get_config_path, load_config
from turnguard.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]

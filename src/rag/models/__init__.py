"""Configuration models for rag."""

from rag.models.config import Config, load_config, save_config

__all__ = ["Config", "load_config", "save_config"]

"""Configuration model for rag.

Config holds the endpoint, credentials and model name. It is persisted as
JSON in a per-user location and is read-only to the turn pipeline.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path

from pydantic import BaseModel, ValidationError

from rag.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://ark.cn-beijing.volces.com/api/v3"
DEFAULT_MODEL = "deepseek-r1-250120"
DEFAULT_API_KEY = ""

CONFIG_FILE_NAME = "rag.json"

_ENV_OVERRIDES: dict[str, str] = {
    "base_url": "RAG_BASE_URL",
    "api_key": "RAG_API_KEY",
    "model": "RAG_MODEL",
}


class Config(BaseModel):
    """Endpoint configuration."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str = DEFAULT_API_KEY
    model: str = DEFAULT_MODEL

    def client_kwargs(self) -> dict:
        """Arguments for :class:`rag.llm.OpenAIClient`."""
        return {
            "api_key": self.api_key,
            "base_url": self.base_url,
            "default_model": self.model,
        }

    def with_env_overrides(self) -> Config:
        """Return a copy with ``RAG_*`` environment variables applied."""
        updates = {
            name: os.environ[var]
            for name, var in _ENV_OVERRIDES.items()
            if os.environ.get(var)
        }
        if not updates:
            return self
        return self.model_copy(update=updates)


def config_dir() -> Path:
    """Platform-specific directory holding rag's config and history."""
    home = Path.home()
    system = platform.system()
    if system == "Windows":
        return home / "AppData" / "Local" / "rag"
    default = home / ".config" / "rag"
    if system not in ("Linux", "Darwin"):
        logger.warning("Unsupported OS: %s, using default path: %s", system, default)
    return default


def default_config_path() -> Path:
    """Config file location; ``RAG_CONFIG`` overrides the platform default."""
    override = os.environ.get("RAG_CONFIG")
    if override:
        return Path(override)
    return config_dir() / CONFIG_FILE_NAME


def save_config(config: Config, path: str | Path | None = None) -> Path:
    """Write config as JSON, creating parent directories.

    Returns:
        The path written to.
    """
    target = Path(path) if path is not None else default_config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(config.model_dump_json(indent=2), encoding="utf-8")
    logger.debug("Saved config to %s", target)
    return target


def load_config(path: str | Path | None = None, *, apply_env: bool = True) -> Config:
    """Load config from disk, creating a default file when none exists.

    Args:
        path: Config file path; defaults to :func:`default_config_path`.
        apply_env: Apply ``RAG_*`` environment overrides to the loaded value.

    Raises:
        ConfigError: If the file exists but cannot be read or parsed.
    """
    from rag.formatting import format_missing_config, get_error_console

    target = Path(path) if path is not None else default_config_path()
    if not target.exists():
        config = Config()
        save_config(config, target)
        format_missing_config(target, config, get_error_console())
    else:
        try:
            config = Config.model_validate_json(target.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise ConfigError(f"Failed to load config {target}: {exc}") from exc

    if apply_env:
        config = config.with_env_overrides()
    return config

"""Application configuration."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

from signal_core.errors import ConfigurationError
from signal_core.models import IndicatorConfig

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Binance API
    binance_base_url: str = "https://fapi.binance.com"
    binance_api_key: str = ""

    # Price window fed to the indicator bank
    kline_interval: str = "1h"
    kline_limit: int = 100

    # Engine
    update_interval_seconds: float = 60.0
    history_size: int = 100
    indicator_config_path: str | None = None

    # User preferences (favorites drive the watch list)
    preferences_path: str = "preferences.json"

    # Redis market-data cache
    redis_url: str = "redis://localhost:6379/0"
    cache_klines: bool = True
    retention_days: float = 7
    cleanup_interval_hours: float = 24

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_indicator_config(path: Path | str | None = None) -> IndicatorConfig:
    """Load indicator overrides from a YAML file.

    Falls back to the built-in defaults if no path is given or the file
    doesn't exist.

    Raises:
        ConfigurationError: If the file content is not a valid configuration.
    """
    if path is None:
        return IndicatorConfig()

    config_path = Path(path)
    if not config_path.exists():
        logger.info("No indicator config at %s, using defaults", config_path)
        return IndicatorConfig()

    with open(config_path) as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping")

    config = IndicatorConfig.from_overrides(raw)
    logger.info("Loaded indicator config from %s", config_path)
    return config

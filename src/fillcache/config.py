"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Hourly bucket cache sizing."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    capacity: int = Field(default=168, ge=1)  # one week of hourly buckets


class SourceSettings(BaseSettings):
    """Fill source selection and fetch behavior.

    ``kind`` picks where buckets are fetched from on a cache miss: the
    exchange's public trade history, or a local SQLite fill store.
    With ``record`` enabled, fills fetched from the exchange are also
    written to the store at ``db_path``.
    """

    model_config = SettingsConfigDict(env_prefix="SOURCE_")

    kind: Literal["exchange", "database"] = "exchange"
    db_path: str = "data/fills.db"
    record: bool = False
    page_limit: int = 1000
    max_retries: int = 5
    retry_base_delay: float = 1.0
    fetch_batch_delay: float = 0.1


class ExchangeSettings(BaseSettings):
    """ccxt exchange connection settings."""

    model_config = SettingsConfigDict(env_prefix="EXCHANGE_")

    exchange_id: str = "binance"
    symbol: str = "BTC/USDT"
    api_key: SecretStr = SecretStr("")
    api_secret: SecretStr = SecretStr("")
    sandbox: bool = False


class SessionSettings(BaseSettings):
    """Query loop behavior."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    stop_on_error: bool = False


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    cache: CacheSettings = CacheSettings()
    source: SourceSettings = SourceSettings()
    exchange: ExchangeSettings = ExchangeSettings()
    session: SessionSettings = SessionSettings()

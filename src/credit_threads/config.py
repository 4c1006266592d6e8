"""Configuration management for credit_threads.

This module provides typed configuration classes using pydantic-settings.
Configuration is loaded from environment variables with optional .env file support.
"""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "DEFAULT_PAGE_LIMIT",
    "MAX_APPEND_ATTEMPTS",
    "MAX_PAGE_LIMIT",
    "SEGMENT_BYTE_THRESHOLD",
    "SEGMENT_MESSAGE_LIMIT",
    "ConversationLogSettings",
    "CreditThreadsConfig",
    "LoggingSettings",
    "MongoSettings",
    "RedisSettings",
]

SEGMENT_MESSAGE_LIMIT = 100
"""Maximum number of messages held by one compressed segment."""

SEGMENT_BYTE_THRESHOLD = 64 * 1024
"""Maximum uncompressed JSON size of one segment, in bytes."""

MAX_APPEND_ATTEMPTS = 5
DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 500


class MongoSettings(BaseSettings):
    """MongoDB connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="CREDIT_THREADS_MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: SecretStr = SecretStr("mongodb://localhost:27017")
    database: str = "credit_threads"
    collection_prefix: str = ""


class RedisSettings(BaseSettings):
    """Redis connection settings (optional).

    If url is not configured or connection fails, segment caching will be disabled.
    """

    model_config = SettingsConfigDict(
        env_prefix="CREDIT_THREADS_REDIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str | None = None
    enabled: bool = True  # Can be explicitly disabled
    segment_ttl_seconds: int = 3600


class ConversationLogSettings(BaseSettings):
    """Segment rotation, retry and pagination settings."""

    model_config = SettingsConfigDict(
        env_prefix="CREDIT_THREADS_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    segment_message_limit: int = SEGMENT_MESSAGE_LIMIT
    segment_byte_threshold: int = SEGMENT_BYTE_THRESHOLD
    max_append_attempts: int = MAX_APPEND_ATTEMPTS
    default_page_limit: int = DEFAULT_PAGE_LIMIT
    max_page_limit: int = MAX_PAGE_LIMIT


class LoggingSettings(BaseSettings):
    """Log output settings, read once when credit_threads.logging is imported."""

    model_config = SettingsConfigDict(
        env_prefix="CREDIT_THREADS_LOGGING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    json_output: bool = False


class CreditThreadsConfig(BaseSettings):
    """Main configuration aggregating all settings.

    Example usage:
        config = CreditThreadsConfig()
        mongo_uri = config.mongo.uri.get_secret_value()
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Component settings (nested)
    mongo: MongoSettings = MongoSettings()
    redis: RedisSettings = RedisSettings()
    log: ConversationLogSettings = ConversationLogSettings()

    @property
    def redis_enabled(self) -> bool:
        """Check if Redis caching is enabled and configured."""
        return self.redis.enabled and self.redis.url is not None

"""Configuration management with CLI args, environment variables, and defaults."""

import os
from dataclasses import dataclass, field
from typing import Optional

from .constants import (
    DEFAULT_BUCKET_SECONDS,
    DEFAULT_DUPLICATE_COMPARE_COUNT,
    DEFAULT_DUPLICATE_WINDOW_SECONDS,
    DEFAULT_FINALIZED_RETENTION_SECONDS,
    DEFAULT_GRACE_SECONDS,
    DEFAULT_PUBLISH_TIMEOUT_SECONDS,
    DEFAULT_RECENT_POST_CAP,
    DEFAULT_RELAYS,
    DEFAULT_SIMILARITY_THRESHOLD,
)


def split_list(value: Optional[str]) -> list[str]:
    """Split a comma-separated option into trimmed, non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Config:
    """Application configuration."""

    # === API ===
    api_host: str = "0.0.0.0"
    api_port: int = 4444
    api_title: str = "BoostBot"
    api_version: str = "1.0.0"
    api_bearer_token: Optional[str] = None

    # === Prometheus ===
    metrics_enabled: bool = True

    # === Logging ===
    log_level: str = "INFO"
    log_format: str = "json"  # json|text

    # === Nostr ===
    nostr_nsec: Optional[str] = None
    relays: list[str] = field(default_factory=lambda: list(DEFAULT_RELAYS))
    publish_timeout_seconds: float = DEFAULT_PUBLISH_TIMEOUT_SECONDS
    test_mode: bool = False

    # === Boosts ===
    allowed_senders: list[str] = field(default_factory=list)
    sessions_file: str = "./data/boost-sessions.json"
    mentions_file: Optional[str] = None
    bucket_seconds: int = DEFAULT_BUCKET_SECONDS
    grace_seconds: float = DEFAULT_GRACE_SECONDS
    finalized_retention_seconds: float = DEFAULT_FINALIZED_RETENTION_SECONDS

    # === Duplicate screening ===
    duplicate_window_seconds: float = DEFAULT_DUPLICATE_WINDOW_SECONDS
    duplicate_compare_count: int = DEFAULT_DUPLICATE_COMPARE_COUNT
    recent_post_cap: int = DEFAULT_RECENT_POST_CAP
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD

    # === Podcast Index ===
    podcast_index_api_key: Optional[str] = None
    podcast_index_api_secret: Optional[str] = None

    @classmethod
    def from_args_and_env(cls, cli_args: Optional[dict] = None) -> "Config":
        """
        Load configuration from CLI arguments, environment variables, and defaults.

        Priority: CLI args > Environment variables > Defaults

        Args:
            cli_args: Dictionary of CLI arguments with unspecified options omitted

        Returns:
            Config instance
        """
        args = cli_args or {}

        # Helper function to get value with priority: CLI > Env (first set wins) > Default
        def get_value(cli_key, env_vars, default, type_converter=str):
            cli_value = args.get(cli_key)
            if cli_value is not None:
                return cli_value
            if isinstance(env_vars, str):
                env_vars = (env_vars,)
            for env_var in env_vars:
                env_value = os.getenv(env_var)
                if env_value is not None:
                    if type_converter == bool:
                        return env_value.lower() in ("true", "1", "yes", "on")
                    return type_converter(env_value)
            return default

        def get_list(cli_key, env_vars, default):
            value = get_value(cli_key, env_vars, None)
            if value is None:
                return default
            if isinstance(value, (list, tuple)):
                return [str(v).strip() for v in value if str(v).strip()]
            return split_list(value)

        config = cls()

        # API
        config.api_host = get_value("api_host", "BOOSTBOT_API_HOST", config.api_host)
        config.api_port = get_value("api_port", ("BOOSTBOT_API_PORT", "PORT"), config.api_port, int)
        config.api_title = get_value("api_title", "BOOSTBOT_API_TITLE", config.api_title)
        config.api_version = get_value("api_version", "BOOSTBOT_API_VERSION", config.api_version)
        config.api_bearer_token = get_value(
            "api_bearer_token", "BOOSTBOT_API_BEARER_TOKEN", config.api_bearer_token
        )
        config.metrics_enabled = get_value(
            "metrics", "BOOSTBOT_METRICS_ENABLED", config.metrics_enabled, bool
        )

        # Logging
        config.log_level = get_value("log_level", "BOOSTBOT_LOG_LEVEL", config.log_level)
        config.log_format = get_value("log_format", "BOOSTBOT_LOG_FORMAT", config.log_format)

        # Nostr
        config.nostr_nsec = get_value(
            "nostr_nsec", ("BOOSTBOT_NOSTR_NSEC", "NOSTR_BOOST_BOT_NSEC"), config.nostr_nsec
        )
        config.relays = get_list("relays", "BOOSTBOT_RELAYS", config.relays)
        config.publish_timeout_seconds = get_value(
            "publish_timeout", "BOOSTBOT_PUBLISH_TIMEOUT_SECONDS",
            config.publish_timeout_seconds, float
        )
        config.test_mode = get_value(
            "test_mode", ("BOOSTBOT_TEST_MODE", "TEST_MODE"), config.test_mode, bool
        )

        # Boosts
        config.allowed_senders = get_list(
            "allowed_senders", "BOOSTBOT_ALLOWED_SENDERS", config.allowed_senders
        )
        config.sessions_file = get_value(
            "sessions_file", "BOOSTBOT_SESSIONS_FILE", config.sessions_file
        )
        config.mentions_file = get_value(
            "mentions_file", "BOOSTBOT_MENTIONS_FILE", config.mentions_file
        )
        config.bucket_seconds = get_value(
            "bucket_seconds", "BOOSTBOT_BUCKET_SECONDS", config.bucket_seconds, int
        )
        config.grace_seconds = get_value(
            "grace_seconds", "BOOSTBOT_GRACE_SECONDS", config.grace_seconds, float
        )
        config.finalized_retention_seconds = get_value(
            "finalized_retention", "BOOSTBOT_FINALIZED_RETENTION_SECONDS",
            config.finalized_retention_seconds, float
        )

        # Duplicate screening
        config.duplicate_window_seconds = get_value(
            "duplicate_window", "BOOSTBOT_DUPLICATE_WINDOW_SECONDS",
            config.duplicate_window_seconds, float
        )
        config.duplicate_compare_count = get_value(
            "duplicate_compare_count", "BOOSTBOT_DUPLICATE_COMPARE_COUNT",
            config.duplicate_compare_count, int
        )
        config.recent_post_cap = get_value(
            "recent_post_cap", "BOOSTBOT_RECENT_POST_CAP", config.recent_post_cap, int
        )
        config.similarity_threshold = get_value(
            "similarity_threshold", "BOOSTBOT_SIMILARITY_THRESHOLD",
            config.similarity_threshold, float
        )

        # Podcast Index
        config.podcast_index_api_key = get_value(
            "podcast_index_api_key", ("BOOSTBOT_PODCAST_INDEX_API_KEY", "PODCAST_INDEX_API_KEY"),
            config.podcast_index_api_key
        )
        config.podcast_index_api_secret = get_value(
            "podcast_index_api_secret",
            ("BOOSTBOT_PODCAST_INDEX_API_SECRET", "PODCAST_INDEX_API_SECRET"),
            config.podcast_index_api_secret
        )

        return config

    @property
    def podcast_index_enabled(self) -> bool:
        return bool(self.podcast_index_api_key and self.podcast_index_api_secret)

    def display(self) -> str:
        """
        Display configuration in human-readable format.

        Returns:
            Formatted configuration string
        """
        lines = [
            "Configuration:",
            "  API:",
            f"    Host: {self.api_host}",
            f"    Port: {self.api_port}",
            f"    Authentication: {'Enabled (Bearer token required)' if self.api_bearer_token else 'Disabled (Public API)'}",
            f"    Metrics: {'Enabled' if self.metrics_enabled else 'Disabled'}",
            "  Logging:",
            f"    Level: {self.log_level}",
            f"    Format: {self.log_format}",
            "  Nostr:",
            f"    Mode: {'Test (log only)' if self.test_mode else 'Live'}",
            f"    Key: {'Configured' if self.nostr_nsec else 'Missing'}",
            f"    Relays: {', '.join(self.relays) if self.relays else 'None'}",
            f"    Publish Timeout: {self.publish_timeout_seconds}s",
            "  Boosts:",
            f"    Allowed Senders: {', '.join(self.allowed_senders) if self.allowed_senders else 'All'}",
            f"    Sessions File: {self.sessions_file}",
            f"    Mentions File: {self.mentions_file or 'None'}",
            f"    Time Bucket: {self.bucket_seconds}s",
            f"    Grace Window: {self.grace_seconds}s",
            "  Duplicate Screening:",
            f"    Window: {self.duplicate_window_seconds}s",
            f"    Compare Last: {self.duplicate_compare_count} posts",
            f"    Recent Post Cap: {self.recent_post_cap}",
            f"    Similarity Threshold: {self.similarity_threshold}",
            "  Podcast Index:",
            f"    Lookups: {'Enabled' if self.podcast_index_enabled else 'Disabled'}",
        ]

        return "\n".join(lines)

"""
Configuration management for the GitHub events relay.

This module handles environment variables, the optional JSON config file and
settings validation using Pydantic Settings for type safety.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class GitHubFeedConfig(BaseModel):
    """Inbound feed configuration settings."""

    token: str = Field(default="", description="GitHub token")
    user: str = Field(..., description="Account whose received events are polled")
    api_url: str = Field(default="https://api.github.com", description="API URL")
    web_url: str = Field(default="https://github.com", description="Web URL")


class SlackConfig(BaseModel):
    """Outbound delivery configuration settings."""

    token: str = Field(..., description="Slack bot token")
    channel: str = Field(..., description="Slack channel ID")
    api_url: str = Field(default="https://slack.com/api", description="API URL")


class PollingConfig(BaseModel):
    """Polling configuration settings."""

    interval_seconds: float = Field(
        default=60, description="Poll interval used until the feed suggests one"
    )
    event_queue_size: int = Field(default=100, description="Event queue capacity")
    error_queue_size: int = Field(default=100, description="Error queue capacity")
    state_file: Path = Field(default=Path(".state"), description="Checkpoint path")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub configuration
    github_token: str = Field(default="", description="GitHub token")
    github_user: str = Field(..., description="GitHub user whose feed is polled")
    github_api_url: str = Field(
        default="https://api.github.com", description="GitHub API URL"
    )
    github_web_url: str = Field(
        default="https://github.com", description="GitHub web URL used in links"
    )

    # Slack configuration
    slack_token: str = Field(..., description="Slack bot token")
    slack_channel: str = Field(..., description="Slack channel to post into")
    slack_api_url: str = Field(
        default="https://slack.com/api", description="Slack Web API URL"
    )

    # Polling configuration
    state_file: Path = Field(default=Path(".state"), description="Checkpoint file")
    poll_interval_seconds: float = Field(
        default=60, description="Default poll interval in seconds"
    )
    event_queue_size: int = Field(default=100, description="Event queue capacity")
    error_queue_size: int = Field(default=100, description="Error queue capacity")
    http_timeout_seconds: float = Field(
        default=30.0, description="Timeout for GitHub and Slack requests"
    )

    # Logging configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="Log format")

    @field_validator("poll_interval_seconds", "http_timeout_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate that durations are positive."""
        if v <= 0:
            raise ValueError(f"Duration must be positive, got {v}")
        return v

    @field_validator("event_queue_size", "error_queue_size")
    @classmethod
    def validate_queue_size(cls, v: int) -> int:
        """Validate queue capacities."""
        if v < 1:
            raise ValueError(f"Queue size must be at least 1, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in {"console", "json"}:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @property
    def github_config(self) -> GitHubFeedConfig:
        """Get inbound feed configuration."""
        return GitHubFeedConfig(
            token=self.github_token,
            user=self.github_user,
            api_url=self.github_api_url,
            web_url=self.github_web_url,
        )

    @property
    def slack_config(self) -> SlackConfig:
        """Get Slack configuration."""
        return SlackConfig(
            token=self.slack_token,
            channel=self.slack_channel,
            api_url=self.slack_api_url,
        )

    @property
    def polling_config(self) -> PollingConfig:
        """Get polling configuration."""
        return PollingConfig(
            interval_seconds=self.poll_interval_seconds,
            event_queue_size=self.event_queue_size,
            error_queue_size=self.error_queue_size,
            state_file=self.state_file,
        )


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Read a JSON config file into Settings keyword arguments.

    The file uses nested sections, for example::

        {"github": {"token": "...", "user": "octocat"},
         "slack": {"token": "xoxb-...", "channel": "C0123"}}

    Every key of a section maps onto the ``<section>_<key>`` setting.
    Top-level scalar keys are passed through unchanged.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    values: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            for sub_key, sub_value in value.items():
                values[f"{key.lower()}_{sub_key.lower()}"] = sub_value
        else:
            values[key.lower()] = value
    return values


def load_settings(config_file: Path | None = None, **overrides: Any) -> Settings:
    """
    Build settings from the environment, an optional JSON file and overrides.

    Values from the config file take precedence over environment variables,
    and explicit overrides take precedence over both.
    """
    values = read_config_file(config_file) if config_file else {}
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

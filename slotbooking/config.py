"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

import pendulum
import yaml
from pendulum import DateTime
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import SlotWindow

DEFAULT_WINDOW_START = "2024-01-01T09:00:00Z"
DEFAULT_WINDOW_END = "2024-01-01T17:00:00Z"


class WindowConfig(BaseModel):
    """Booking window settings."""
    start: datetime = Field(default_factory=lambda: pendulum.parse(DEFAULT_WINDOW_START))
    end: datetime = Field(default_factory=lambda: pendulum.parse(DEFAULT_WINDOW_END))
    granularity_minutes: int = 15

    @field_validator("granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Ensure slot granularity is positive."""
        if value <= 0:
            raise ValueError("granularity_minutes must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_window_order(self) -> "WindowConfig":
        """Ensure the configured window opens before it closes."""
        if _is_naive(self.start) != _is_naive(self.end):
            raise ValueError("start and end must both carry a timezone or both omit it")
        if self.end <= self.start:
            raise ValueError("window end must be later than window start")
        return self


class NotifierConfig(BaseModel):
    """SMTP settings for booking notifications."""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    username: str = ""
    password: str = ""
    sender_name: str = "Notifier Bot"
    recipient: str = ""
    use_tls: bool = True
    timeout_seconds: float = 20.0

    @field_validator("smtp_port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        """Validate port is between 1 and 65535."""
        if not 1 <= value <= 65535:
            raise ValueError(f"smtp_port must be between 1 and 65535, got {value}")
        return value

    def is_enabled(self) -> bool:
        """Email is only sent when credentials and a recipient are configured."""
        return bool(self.username and self.password and self.recipient)


class AppConfig(BaseModel):
    """Application configuration."""
    window: WindowConfig = Field(default_factory=WindowConfig)
    timezone: str = "UTC"
    locale: str = "en"
    database_url: str = "sqlite:///bookings.db"
    notifier: NotifierConfig = Field(default_factory=NotifierConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    def get_window(self) -> SlotWindow:
        """Build the immutable slot window; naive bounds use the configured timezone."""
        return SlotWindow(
            start=self._to_datetime(self.window.start),
            end=self._to_datetime(self.window.end),
            granularity_minutes=self.window.granularity_minutes,
        )

    def _to_datetime(self, value: datetime) -> DateTime:
        if _is_naive(value):
            return pendulum.instance(value, tz=self.timezone)
        return pendulum.instance(value)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def with_env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """
        Return a copy with values from the environment applied.

        Recognised variables: START_TIME, END_TIME, DATABASE_URL,
        EMAIL_USER, EMAIL_PASS and NOTIFY_EMAIL.
        """
        env = os.environ if environ is None else environ
        data = self.model_dump()

        if env.get("START_TIME"):
            data["window"]["start"] = env["START_TIME"]
        if env.get("END_TIME"):
            data["window"]["end"] = env["END_TIME"]
        if env.get("DATABASE_URL"):
            data["database_url"] = env["DATABASE_URL"]
        if env.get("EMAIL_USER"):
            data["notifier"]["username"] = env["EMAIL_USER"]
        if env.get("EMAIL_PASS"):
            data["notifier"]["password"] = env["EMAIL_PASS"]
        if env.get("NOTIFY_EMAIL"):
            data["notifier"]["recipient"] = env["NOTIFY_EMAIL"]

        return type(self).model_validate(data)


def _is_naive(value: datetime) -> bool:
    return value.tzinfo is None or value.tzinfo.utcoffset(value) is None


def get_default_config_path() -> Path:
    """Return config.yaml in the current working directory."""
    return Path.cwd() / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Resolve the application configuration.

    An explicit path must exist. Without one, the default config.yaml is used
    when present, otherwise built-in defaults apply. Environment overrides
    are applied last.
    """
    if config_path is not None:
        config = AppConfig.load_from_yaml(config_path)
    else:
        default_path = get_default_config_path()
        config = AppConfig.load_from_yaml(default_path) if default_path.exists() else AppConfig()

    return config.with_env_overrides()

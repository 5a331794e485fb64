"""Pydantic configuration models for willpower reminders."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_PROVIDERS = {"overpass", "static"}
VALID_NOTIFY_METHODS = {"console", "webhook", "email"}
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _expand_env(value: Optional[str]) -> Optional[str]:
    """Resolve a ``${VAR}`` placeholder from the environment."""
    if value and value.startswith("${") and value.endswith("}"):
        return os.getenv(value[2:-1], "")
    return value


class StabilityConfig(BaseModel):
    """Dwell detection thresholds."""

    accuracy_ceiling_m: float = 20.0
    stillness_threshold_m: float = 4.0
    stability_threshold_s: float = 5.0
    tick_interval_s: float = 1.0

    @field_validator("accuracy_ceiling_m", "stillness_threshold_m", "stability_threshold_s", "tick_interval_s")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"must be > 0, got {v}")
        return v


class ResolverConfig(BaseModel):
    """Place search and cache settings."""

    search_radius_m: float = 25.0
    cache_precision: int = 3
    cache_expiry_s: float = 300.0
    cache_max_entries: int = 256
    # Tunable; GPS noise makes sub-meter distances unreliable
    exact_match_epsilon_m: float = 0.1
    query_timeout_s: float = 10.0

    @field_validator("search_radius_m")
    @classmethod
    def validate_radius(cls, v: float) -> float:
        if not 25.0 <= v <= 50.0:
            raise ValueError(f"search_radius_m must be 25-50, got {v}")
        return v

    @field_validator("cache_precision")
    @classmethod
    def validate_precision(cls, v: int) -> int:
        if not 0 <= v <= 6:
            raise ValueError(f"cache_precision must be 0-6, got {v}")
        return v

    @field_validator("cache_expiry_s", "query_timeout_s", "exact_match_epsilon_m")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"must be > 0, got {v}")
        return v

    @field_validator("cache_max_entries")
    @classmethod
    def validate_max_entries(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"cache_max_entries must be >= 1, got {v}")
        return v


class DispatchConfig(BaseModel):
    """Notification cooldown settings."""

    cooldown_s: float = 300.0
    cooldown_max_entries: int = 1024
    title: str = "Budget Reminder"

    @field_validator("cooldown_s")
    @classmethod
    def validate_cooldown(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"cooldown_s must be >= 0, got {v}")
        return v


class ProviderConfig(BaseModel):
    """Point-of-interest provider."""

    name: str = "overpass"
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    places_file: Optional[Path] = None
    user_agent: str = "willpower-reminders/0.1"
    http_timeout_s: float = 15.0

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if v not in VALID_PROVIDERS:
            raise ValueError(f"Invalid provider: {v}. Must be one of {VALID_PROVIDERS}")
        return v

    @model_validator(mode="after")
    def check_static_file(self):
        if self.name == "static" and self.places_file is None:
            raise ValueError("provider 'static' requires places_file")
        if self.places_file is not None:
            self.places_file = self.places_file.expanduser()
        return self


class EmailConfig(BaseModel):
    """SMTP settings for the email sink."""

    smtp_host: Optional[str] = None
    smtp_port: int = 587
    username: str = ""
    password: str = ""
    to: Optional[str] = None
    from_addr: Optional[str] = None


class NotifyConfig(BaseModel):
    """Where reminders are delivered."""

    methods: list[str] = Field(default_factory=lambda: ["console"])
    webhook_url: Optional[str] = None
    webhook_format: str = "ntfy"
    webhook_token: Optional[str] = None
    email: EmailConfig = Field(default_factory=EmailConfig)

    @field_validator("methods")
    @classmethod
    def validate_methods(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("at least one notify method is required")
        unknown = set(v) - VALID_NOTIFY_METHODS
        if unknown:
            raise ValueError(f"Invalid notify methods: {sorted(unknown)}. Must be in {VALID_NOTIFY_METHODS}")
        return v

    @model_validator(mode="after")
    def check_targets(self):
        if "webhook" in self.methods and not self.webhook_url:
            raise ValueError("notify method 'webhook' requires webhook_url")
        if "email" in self.methods and not (self.email.smtp_host and self.email.to):
            raise ValueError("notify method 'email' requires email.smtp_host and email.to")
        return self


class RetryConfig(BaseModel):
    """Retry/backoff for provider HTTP calls."""

    max_attempts: int = 3
    min_wait: float = 1.0
    max_wait: float = 8.0


class PathsConfig(BaseModel):
    """File paths configuration."""

    db_path: Path = Path("~/.willpower/targets.db")
    log_file: Optional[Path] = None

    @model_validator(mode="after")
    def expand_paths(self):
        self.db_path = self.db_path.expanduser()
        if self.log_file is not None:
            self.log_file = self.log_file.expanduser()
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_mode: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class ReminderConfig(BaseModel):
    """Main configuration model."""

    stability: StabilityConfig = Field(default_factory=StabilityConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in secrets."""
        self.notify.webhook_url = _expand_env(self.notify.webhook_url)
        self.notify.webhook_token = _expand_env(self.notify.webhook_token)
        self.notify.email.password = _expand_env(self.notify.email.password) or ""
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "ReminderConfig":
        return cls.model_validate(data or {})

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")

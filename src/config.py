"""
Configuration models for healwright.

Provides immutable, Pydantic-validated configuration that is threaded explicitly
through the resolver, retry wrapper and navigation sequencer, plus loading from
environment variables and an optional YAML file.
"""

from __future__ import annotations

from difflib import get_close_matches
from enum import StrEnum
from functools import cached_property
from pathlib import Path
from typing import Any, Literal, Self

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_BROWSERS: tuple[str, ...] = ("chromium", "firefox", "webkit")

STANDARD_CONFIG_PATHS: tuple[Path, ...] = (
    Path(".healwright.yaml"),
    Path(".healwright.yml"),
    Path("healwright.yaml"),
)


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or validated."""

    pass


class BackoffMode(StrEnum):
    """How the delay between retry attempts grows."""

    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class RetryPolicy(BaseModel):
    """Bounded retry budget with non-decreasing backoff."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = Field(default=3, ge=1, le=20)
    base_delay_ms: int = Field(default=500, ge=0, le=60000)
    backoff: BackoffMode = BackoffMode.LINEAR
    max_delay_ms: int = Field(default=10000, ge=0, le=300000)

    @model_validator(mode="after")
    def validate_delays(self) -> Self:
        """Ensure the cap does not undercut the base delay."""
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be greater than or equal to base_delay_ms")
        return self

    def delay_for(self, attempt: int) -> int:
        """
        Delay in milliseconds to wait after the given failed attempt.

        Linear backoff waits ``base * attempt``; exponential waits
        ``base * 2 ** (attempt - 1)``. Both are capped by ``max_delay_ms``
        and never decrease as ``attempt`` grows.
        """
        if attempt < 1:
            raise ValueError("attempt numbers start at 1")

        match self.backoff:
            case BackoffMode.LINEAR:
                delay = self.base_delay_ms * attempt
            case BackoffMode.EXPONENTIAL:
                delay = self.base_delay_ms * 2 ** (attempt - 1)
            case _:
                raise ValueError(f"Unknown backoff mode: {self.backoff}")

        return min(delay, self.max_delay_ms)


class NavigationStrategy(BaseModel):
    """One ready condition tried by the navigation sequencer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    wait_until: Literal["domcontentloaded", "load", "networkidle"]
    timeout_ms: int = Field(default=30000, ge=1, le=600000)


DEFAULT_NAVIGATION_STRATEGIES: tuple[NavigationStrategy, ...] = (
    NavigationStrategy(wait_until="domcontentloaded", timeout_ms=30000),
    NavigationStrategy(wait_until="load", timeout_ms=45000),
    NavigationStrategy(wait_until="networkidle", timeout_ms=60000),
)


class NavigationConfig(BaseModel):
    """Settings for the navigation fallback sequencer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategies: tuple[NavigationStrategy, ...] = DEFAULT_NAVIGATION_STRATEGIES
    outer_attempts: int = Field(default=3, ge=1, le=20)
    retry: RetryPolicy = Field(
        default_factory=RetryPolicy,
        description="Delay fields only; outer_attempts bounds the rounds",
    )
    settle_timeout_ms: int = Field(default=10000, ge=0, le=600000)

    @field_validator("strategies")
    @classmethod
    def validate_strategies(
        cls, v: tuple[NavigationStrategy, ...]
    ) -> tuple[NavigationStrategy, ...]:
        """At least one ready condition is required."""
        if not v:
            raise ValueError("at least one navigation strategy is required")
        return v


class ResolverConfig(BaseModel):
    """Settings for candidate resolution."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    candidate_timeout_ms: int = Field(
        default=2000,
        ge=1,
        le=120000,
        description="Visibility wait per candidate; kept short so several fit in one step",
    )


def normalize_browser_name(browser_name: str) -> str:
    """Return a canonical browser name, fixing close typos when possible."""
    normalized = (browser_name or "").strip().lower()
    if not normalized:
        raise ValueError("Browser name cannot be empty.")

    if normalized in SUPPORTED_BROWSERS:
        return normalized

    matches = get_close_matches(normalized, list(SUPPORTED_BROWSERS), n=1, cutoff=0.6)
    if matches:
        return matches[0]

    options = ", ".join(SUPPORTED_BROWSERS)
    raise ValueError(f"Unsupported browser '{browser_name}'. Choose from {options}.")


class ResilienceConfig(BaseModel):
    """Complete runtime configuration, configured once and passed to every step."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL that relative navigation targets are joined onto",
    )
    browser: str = "chromium"
    headless: bool = True
    test_timeout_ms: int = Field(default=90000, ge=1000, le=3600000)
    artifacts_dir: Path = Path("test-results/screenshots")

    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    navigation: NavigationConfig = Field(default_factory=NavigationConfig)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base_url is valid and strip trailing slashes."""
        v = v.rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @field_validator("browser")
    @classmethod
    def validate_browser(cls, v: str) -> str:
        """Canonicalise the browser name."""
        return normalize_browser_name(v)

    def with_overrides(self, **kwargs: Any) -> ResilienceConfig:
        """Return a validated copy with the given fields replaced."""
        data = self.model_dump()
        data.update(kwargs)
        return ResilienceConfig.model_validate(data)


class HealwrightSettings(BaseSettings):
    """
    Environment-based settings.

    Loads flat configuration from environment variables with the HEALWRIGHT_
    prefix. Only variables that are actually set override values from the
    configuration file.
    """

    model_config = SettingsConfigDict(
        env_prefix="HEALWRIGHT_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = "http://localhost:3000"
    browser: str = "chromium"
    headless: bool = True
    test_timeout_ms: int = 90000
    artifacts_dir: Path = Path("test-results/screenshots")

    candidate_timeout_ms: int = 2000
    max_attempts: int = 3
    base_delay_ms: int = 500
    backoff: BackoffMode = BackoffMode.LINEAR
    navigation_attempts: int = 3

    config_file: Path | None = None

    def _pick(self, name: str, file_value: Any) -> Any:
        if name in self.model_fields_set or file_value is None:
            return getattr(self, name)
        return file_value

    @cached_property
    def config(self) -> ResilienceConfig:
        """Build the complete ResilienceConfig from file and environment."""
        file_config = _read_config_file(self.config_file)
        retry_file = file_config.get("retry") or {}
        resolver_file = file_config.get("resolver") or {}
        navigation_file = dict(file_config.get("navigation") or {})

        retry = RetryPolicy(
            **{
                **retry_file,
                "max_attempts": self._pick("max_attempts", retry_file.get("max_attempts")),
                "base_delay_ms": self._pick("base_delay_ms", retry_file.get("base_delay_ms")),
                "backoff": self._pick("backoff", retry_file.get("backoff")),
            }
        )

        navigation_file["outer_attempts"] = self._pick(
            "navigation_attempts", navigation_file.get("outer_attempts")
        )
        if "retry" in navigation_file:
            navigation_file["retry"] = RetryPolicy(**navigation_file["retry"])
        if "strategies" in navigation_file:
            navigation_file["strategies"] = tuple(
                NavigationStrategy(**s) for s in navigation_file["strategies"]
            )

        return ResilienceConfig(
            base_url=self._pick("base_url", file_config.get("base_url")),
            browser=self._pick("browser", file_config.get("browser")),
            headless=self._pick("headless", file_config.get("headless")),
            test_timeout_ms=self._pick("test_timeout_ms", file_config.get("test_timeout_ms")),
            artifacts_dir=self._pick("artifacts_dir", file_config.get("artifacts_dir")),
            resolver=ResolverConfig(
                candidate_timeout_ms=self._pick(
                    "candidate_timeout_ms", resolver_file.get("candidate_timeout_ms")
                ),
            ),
            retry=retry,
            navigation=NavigationConfig(**navigation_file),
        )


def _read_config_file(path: Path | None) -> dict[str, Any]:
    """Read a YAML configuration mapping, returning {} when absent."""
    if path is None:
        return {}
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_config(config_file: Path | str | None = None) -> ResilienceConfig:
    """
    Load configuration from file and/or environment.

    Priority (highest to lowest):
    1. Environment variables that are explicitly set
    2. Config file (explicit path, else the first standard location found)
    3. Defaults

    Args:
        config_file: Optional path to YAML config file

    Returns:
        Complete ResilienceConfig instance

    Raises:
        ConfigError: If the file is missing, malformed or holds invalid values
    """
    path = Path(config_file) if config_file else None
    if path is None:
        path = next((p for p in STANDARD_CONFIG_PATHS if p.exists()), None)

    try:
        settings = HealwrightSettings(config_file=path)
        return settings.config
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

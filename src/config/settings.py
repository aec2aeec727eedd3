"""
Configuration settings for the WWFF directory tools.

**Conceptual**: This module provides strongly-typed configuration objects that
load from environment variables (via .env files). All settings are validated
when loaded, so a bad value fails at startup rather than halfway through a
download.

**Subsystems**:
  - WwffDownloadSettings: where and how to fetch the directory (URL, timeout,
    User-Agent, retry policy).
  - DecoderSettings: how to read cells whose format is configurable (dates).
  - LoggingSettings: log level and optional log file for the action scripts.

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root (no-op if the file doesn't exist)
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


DEFAULT_DIRECTORY_URL = "https://wwff.co/wwff-data/wwff_directory.csv"
DEFAULT_USER_AGENT = "wwff-directory/0.1.0"
DEFAULT_DATE_FORMAT = "%Y-%m-%d"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw}")


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw}")


@dataclass(frozen=True)
class WwffDownloadSettings:
    """
    Configuration for downloading the WWFF directory.

    **Conceptual**: The directory is a single public CSV file served over
    HTTPS. No credentials are needed; these settings only control where the
    file is fetched from and how patient the client is.

    Attributes:
        directory_url: URL of the directory CSV.
        timeout_seconds: HTTP request timeout in seconds (default 30).
        user_agent: User-Agent header sent with every request.
        retry_attempts: Total attempts for retryable failures (connection
                        errors, timeouts, 429 and 5xx). Must be >= 1.
        backoff_seconds: Base delay between attempts; attempt n waits
                         backoff_seconds * 2**n.
    """
    directory_url: str = DEFAULT_DIRECTORY_URL
    timeout_seconds: int = 30
    user_agent: str = DEFAULT_USER_AGENT
    retry_attempts: int = 3
    backoff_seconds: float = 1.0

    def __post_init__(self):
        """Validate settings after initialization."""
        if not self.directory_url:
            raise ValueError(
                "WWFF_DIRECTORY_URL must not be empty. "
                "Unset it to use the default directory URL."
            )
        if not self.directory_url.startswith(("https://", "http://")):
            raise ValueError(
                f"WWFF_DIRECTORY_URL must be an http(s) URL, got: {self.directory_url}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got: {self.timeout_seconds}"
            )
        if self.retry_attempts < 1:
            raise ValueError(
                f"retry_attempts must be at least 1, got: {self.retry_attempts}"
            )
        if self.backoff_seconds < 0:
            raise ValueError(
                f"backoff_seconds must be non-negative, got: {self.backoff_seconds}"
            )

    @classmethod
    def from_env(cls) -> "WwffDownloadSettings":
        """
        Load download settings from environment variables.

        **Environment variables** (all optional):
          - WWFF_DIRECTORY_URL: directory CSV URL.
          - WWFF_TIMEOUT_SECONDS: HTTP timeout in seconds (default 30).
          - WWFF_USER_AGENT: User-Agent header (default "wwff-directory/0.1.0").
          - WWFF_RETRY_ATTEMPTS: attempts for retryable failures (default 3).
          - WWFF_BACKOFF_SECONDS: base backoff delay in seconds (default 1.0).

        Returns:
            WwffDownloadSettings with values loaded from environment.

        Raises:
            ValueError: If a numeric variable can't be parsed or a value is
                       out of range.
        """
        return cls(
            directory_url=os.getenv("WWFF_DIRECTORY_URL", DEFAULT_DIRECTORY_URL),
            timeout_seconds=_env_int("WWFF_TIMEOUT_SECONDS", "30"),
            user_agent=os.getenv("WWFF_USER_AGENT", DEFAULT_USER_AGENT),
            retry_attempts=_env_int("WWFF_RETRY_ATTEMPTS", "3"),
            backoff_seconds=_env_float("WWFF_BACKOFF_SECONDS", "1.0"),
        )


@dataclass(frozen=True)
class DecoderSettings:
    """
    Configuration for decoding directory rows.

    Attributes:
        date_format: strptime format for validFrom, validTo and lastAct
                     (default "%Y-%m-%d").
    """
    date_format: str = DEFAULT_DATE_FORMAT

    def __post_init__(self):
        if not self.date_format:
            raise ValueError("WWFF_DATE_FORMAT must not be empty.")

    @classmethod
    def from_env(cls) -> "DecoderSettings":
        """Load decoder settings from WWFF_DATE_FORMAT."""
        return cls(date_format=os.getenv("WWFF_DATE_FORMAT", DEFAULT_DATE_FORMAT))


@dataclass(frozen=True)
class LoggingSettings:
    """
    Logging configuration for the action scripts.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional file to write logs to in addition to the console.
    """
    level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        if self.level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {list(VALID_LOG_LEVELS)}, got: {self.level}"
            )

    @classmethod
    def from_env(cls) -> "LoggingSettings":
        """Load logging settings from LOG_LEVEL and LOG_FILE."""
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
        )


@dataclass(frozen=True)
class Settings:
    """
    Global settings for the WWFF directory tools.

    **Usage pattern**:
      ```python
      from src.config.settings import get_settings

      settings = get_settings()
      client = WwffDirectoryClient(settings.download)
      ```

    Attributes:
        download: Directory download settings.
        decoder: Row decoding settings.
        logging: Logging settings.
    """
    download: WwffDownloadSettings = field(default_factory=WwffDownloadSettings)
    decoder: DecoderSettings = field(default_factory=DecoderSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load all subsystem settings from environment variables.

        Raises:
            ValueError: If any subsystem setting is invalid.
        """
        return cls(
            download=WwffDownloadSettings.from_env(),
            decoder=DecoderSettings.from_env(),
            logging=LoggingSettings.from_env(),
        )


# Lazily loaded singleton; tests can build Settings(...) directly instead
_default_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings singleton.

    Settings are loaded from environment on first call, then cached for reuse.
    Call reset_settings() to force a reload (used in tests).

    Returns:
        Global Settings singleton.

    Raises:
        ValueError: If the environment holds an invalid value.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = Settings.from_env()

    return _default_settings


def reset_settings():
    """Reset the global settings singleton so the next access reloads it."""
    global _default_settings
    _default_settings = None

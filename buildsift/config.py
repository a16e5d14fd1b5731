"""Runtime configuration — env-driven thresholds for parsing and monitoring.

Centralized config using pydantic-settings for environment variable
support.  Reads from a .env file and BUILDSIFT_* environment variables.
"""

from __future__ import annotations

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SiftConfig(BaseSettings):
    """Parser, monitor, and rebuild settings with environment overrides.

    All settings can be overridden via BUILDSIFT_* environment variables
    or a .env file in the working directory.

    Examples
    --------
    Override via environment::

        export BUILDSIFT_LOG_LEVEL=DEBUG
        export BUILDSIFT_HANG_THRESHOLD_SECONDS=600
        export BUILDSIFT_MIN_SEVERITY=warning

    Or via .env file::

        BUILDSIFT_CANCEL_ON_HANG=false
        BUILDSIFT_MONITOR_RESOURCES=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDSIFT_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    debug: bool = False

    # Parsing
    min_severity: str = "info"

    # Progress and ETA
    update_interval_seconds: float = 1.0
    eta_min_progress: float = 0.1

    # Hang detection
    hang_suspect_seconds: float = 60.0
    hang_threshold_seconds: float = 300.0
    cancel_on_hang: bool = True

    # Overall build timeout; 0 disables it
    build_timeout_seconds: float = 3600.0

    # Resource sampling
    monitor_resources: bool = False

    # Rebuild strategy thresholds
    large_derived_data_bytes: int = 1_000_000_000
    memory_pressure_threshold: float = 0.8

    @model_validator(mode="after")
    def _check_hang_thresholds(self) -> SiftConfig:
        if self.hang_threshold_seconds <= self.hang_suspect_seconds:
            raise ValueError(
                "hang_threshold_seconds must be greater than hang_suspect_seconds "
                f"(got {self.hang_threshold_seconds} <= {self.hang_suspect_seconds})"
            )
        return self


# Module-level singleton, import as `from buildsift.config import config`
config = SiftConfig()

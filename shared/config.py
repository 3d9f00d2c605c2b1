"""
Configuration management for the Jira issues exporter.
"""

import math
import re
from typing import List, Tuple

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigError


REFRESH_MODES = ("background", "scrape")
LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")

# Go-style durations, e.g. "5m", "1h30m", "90s"
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: str) -> float:
    """Parse a duration string into seconds.

    Accepts a bare number of seconds ("300") or a sequence of
    number+unit parts ("5m", "1h30m", "1.5h", "500ms").
    """
    text = str(value).strip()
    if not text:
        raise ValueError("empty duration")
    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                raise ValueError(f"invalid duration: {value!r}")
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
        if pos != len(text) or pos == 0:
            raise ValueError(f"invalid duration: {value!r}")
    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"duration must be positive: {value!r}")
    return seconds


def parse_listen(value: str) -> Tuple[str, int]:
    """Split a "host:port" listen address. An empty host binds all interfaces."""
    host, sep, port = str(value).strip().rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"listen address must be host:port, got {value!r}")
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValueError(f"port out of range: {port_number}")
    return (host.strip("[]") or "0.0.0.0", port_number)


class ExporterConfig(BaseSettings):
    """Exporter settings, read from the environment or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore"
    )

    # Tracker connection
    jira_url: str
    jira_user: str
    jira_api_token: str
    projects: str
    jira_request_timeout: float = Field(default=30.0, gt=0)
    jira_page_size: int = Field(default=100, gt=0)

    # Refresh
    analyze_period_days: int = Field(default=90, gt=0)
    data_refresh_period: str = "5m"
    refresh_mode: str = "background"
    skip_invalid_issues: bool = False

    # Service
    listen: str
    log_level: str = "info"
    env: str = "production"

    @field_validator("jira_url")
    @classmethod
    def _strip_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("JIRA_URL must be an http(s) URL")
        return value

    @field_validator("projects")
    @classmethod
    def _check_projects(cls, value: str) -> str:
        if not [key for key in value.split(",") if key.strip()]:
            raise ValueError("PROJECTS must list at least one project key")
        return value

    @field_validator("data_refresh_period")
    @classmethod
    def _check_refresh_period(cls, value: str) -> str:
        parse_duration(value)
        return value

    @field_validator("refresh_mode")
    @classmethod
    def _check_refresh_mode(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in REFRESH_MODES:
            raise ValueError(f"REFRESH_MODE must be one of {', '.join(REFRESH_MODES)}")
        return value

    @field_validator("listen")
    @classmethod
    def _check_listen(cls, value: str) -> str:
        parse_listen(value)
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return value

    @property
    def project_keys(self) -> List[str]:
        return [key.strip() for key in self.projects.split(",") if key.strip()]

    @property
    def refresh_interval_seconds(self) -> float:
        return parse_duration(self.data_refresh_period)

    @property
    def host(self) -> str:
        return parse_listen(self.listen)[0]

    @property
    def port(self) -> int:
        return parse_listen(self.listen)[1]


def get_config(**overrides) -> ExporterConfig:
    """Load exporter configuration, raising ConfigError on missing or invalid values."""
    try:
        return ExporterConfig(**overrides)
    except ValidationError as e:
        problems = {
            ".".join(str(part) for part in error["loc"]).upper() or "CONFIG": error["msg"]
            for error in e.errors()
        }
        raise ConfigError(
            f"Invalid configuration: {', '.join(sorted(problems))}",
            details=problems
        ) from e

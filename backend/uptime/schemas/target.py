"""Target and notification schemas for the YAML config file."""
import re
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_INTERVAL_SECONDS = 30.0
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_METHOD = "HTTP"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Union[str, int, float, None]) -> Optional[float]:
    """Parse a duration into seconds.

    Accepts plain numbers (seconds) or unit strings such as ``500ms``,
    ``30s``, ``5m``, ``1h`` and ``1m30s``. Returns None for None or blank input.

    Raises:
        ValueError: If the string is not a recognised duration
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip().lower()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            raise ValueError(f"Invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"Invalid duration: {value!r}")
    return total


class Target(BaseModel):
    """A monitored endpoint, immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    method: str = DEFAULT_METHOD  # HTTP, HTTPS, GET or TCP
    interval: float = Field(default=DEFAULT_INTERVAL_SECONDS, gt=0)  # seconds
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)  # seconds

    @field_validator("id", "name", "url", mode="before")
    @classmethod
    def _strip(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("method", mode="before")
    @classmethod
    def _default_method(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_METHOD
        return str(v).strip().upper()

    @field_validator("interval", mode="before")
    @classmethod
    def _default_interval(cls, v):
        seconds = parse_duration(v)
        # Zero is treated as unset
        return DEFAULT_INTERVAL_SECONDS if not seconds else seconds

    @field_validator("timeout", mode="before")
    @classmethod
    def _default_timeout(cls, v):
        seconds = parse_duration(v)
        return DEFAULT_TIMEOUT_SECONDS if not seconds else seconds


class NotificationSettings(BaseModel):
    """Webhook notification settings."""
    enabled: bool = False
    webhook_url: str = ""
    username: str = "Uptime Engine"


class MonitorConfig(BaseModel):
    """Root of the targets file."""
    targets: List[Target] = Field(default_factory=list)
    discord: NotificationSettings = Field(default_factory=NotificationSettings)

    @field_validator("targets", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return [] if v is None else v

    @field_validator("discord", mode="before")
    @classmethod
    def _none_is_disabled(cls, v):
        return {} if v is None else v

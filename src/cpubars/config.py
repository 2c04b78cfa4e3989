"""Client configuration for cpubars.

Values come from environment variables and can be overridden from the
command line:

- CPUBARS_URL
- CPUBARS_MODE
- CPUBARS_POLL_INTERVAL
- CPUBARS_ORDERED
- CPUBARS_TIMEOUT
- CPUBARS_BAR_WIDTH
- CPUBARS_LOG_LEVEL
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace

from textual.logging import TextualHandler

from cpubars.models import SamplerMode

MIN_POLL_INTERVAL = 0.2
MAX_POLL_INTERVAL = 1.0


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float | None) -> float | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


def clamp_interval(seconds: float) -> float:
    """Clamp a poll interval to the supported range."""
    return max(MIN_POLL_INTERVAL, min(MAX_POLL_INTERVAL, seconds))


@dataclass(frozen=True)
class ClientConfig:
    """Settings for one cpubars session."""

    base_url: str = field(default_factory=lambda: os.getenv("CPUBARS_URL", "http://localhost:8080"))
    mode: SamplerMode = field(
        default_factory=lambda: SamplerMode(os.getenv("CPUBARS_MODE", "poll").lower())
    )
    poll_interval: float = field(
        default_factory=lambda: _env_float("CPUBARS_POLL_INTERVAL", MAX_POLL_INTERVAL)
    )
    ordered: bool = field(default_factory=lambda: _env_bool("CPUBARS_ORDERED"))
    timeout: float | None = field(default_factory=lambda: _env_float("CPUBARS_TIMEOUT", None))
    bar_width: int = field(default_factory=lambda: int(os.getenv("CPUBARS_BAR_WIDTH", "20")))
    log_level: str = field(default_factory=lambda: os.getenv("CPUBARS_LOG_LEVEL", "WARNING"))

    def __post_init__(self) -> None:
        # Accept plain strings for mode, e.g. from argparse
        if not isinstance(self.mode, SamplerMode):
            object.__setattr__(self, "mode", SamplerMode(str(self.mode).lower()))
        object.__setattr__(self, "poll_interval", clamp_interval(self.poll_interval))
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        if self.bar_width < 1:
            raise ValueError(f"bar_width must be positive, got {self.bar_width}")

    def with_overrides(self, **overrides) -> "ClientConfig":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"unknown config fields: {', '.join(sorted(unknown))}")
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


def configure_logging(level: str = "WARNING") -> None:
    """Route log records to the Textual devtools console."""
    logging.basicConfig(
        level=level.upper(),
        handlers=[TextualHandler()],
        force=True,
    )

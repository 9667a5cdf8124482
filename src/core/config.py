"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.errors import ConfigError
from core.models import Severity


@dataclass(frozen=True)
class AgentConfig:
    """How to reach the agent's command API and address its bots."""

    base_url: str
    password: Optional[str]
    command_prefix: str
    bots: str
    timeout: float = 30.0

    def command(self, name: str, *args: str) -> str:
        return " ".join([f"{self.command_prefix}{name}", *args])


@dataclass(frozen=True)
class ClaimConfig:
    """Batching and pacing settings for the claim cycle."""

    interval_hours: float
    show_account_status: bool
    batch_size: int = 40
    submit_delay: float = 2.0


@dataclass(frozen=True)
class WebhookConfig:
    """Notification sink settings consumed by the webhook notifier."""

    url: Optional[str]
    enabled_types: frozenset[Severity]

    @property
    def enabled(self) -> bool:
        return bool(self.url)


def parse_interval_hours(raw: str) -> float:
    """Return the claim interval in hours or raise ConfigError."""

    try:
        hours = float(str(raw).strip())
    except ValueError as exc:
        raise ConfigError(f"Claim interval must be a number of hours, got {raw!r}") from exc
    # NaN and inf both fail this comparison or the one below.
    if not hours > 0 or hours == float("inf"):
        raise ConfigError(f"Claim interval must be positive, got {raw!r}")
    return hours

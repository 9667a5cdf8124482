"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class Severity(str, Enum):
    """Notification and console severity."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    SUCCESS = "success"

    @classmethod
    def parse_many(cls, raw: str, separator: str = ";") -> frozenset[Severity]:
        """Parse a separator-delimited list, ignoring unknown names."""

        known = {member.value: member for member in cls}
        parsed = set()
        for part in raw.split(separator):
            name = part.strip().lower()
            if name in known:
                parsed.add(known[name])
        return frozenset(parsed)


@dataclass(frozen=True)
class AccountClaim:
    """Outcome of a claim command for one managed account."""

    item_ref: Optional[str]
    status: str


# Account name -> parsed claim outcome.
ClaimResult = Dict[str, AccountClaim]


@dataclass(frozen=True)
class AccountReadiness:
    """Connection state of one managed account."""

    status_text: str
    ready: bool


@dataclass(frozen=True)
class ReadinessResult:
    """Readiness of every account matched in one status response."""

    accounts: Dict[str, AccountReadiness]
    all_ready: bool


@dataclass(frozen=True)
class CommandResponse:
    """Decoded body of the agent's command endpoint."""

    success: bool
    result: str
    message: str
    status_code: int


@dataclass(frozen=True)
class LicenseRef:
    """A code normalized to its store kind ("app" or "sub") and numeric id."""

    kind: str
    id: str


@dataclass
class NotificationJob:
    """One outbound notification, owned by the dispatch queue once enqueued."""

    destination: str
    payload: Dict[str, Any]
    on_delivered: Optional[Callable[[], None]] = None
    on_failed: Optional[Callable[[BaseException], None]] = None


class CycleOutcome(str, Enum):
    NO_NEW_CODES = "no_new_codes"
    COMPLETED = "completed"
    FATAL = "fatal"


@dataclass
class CycleReport:
    """What one claim cycle did; FATAL means the process should exit."""

    outcome: CycleOutcome
    processed: List[str] = field(default_factory=list)
    rate_limited: List[str] = field(default_factory=list)
    error: Optional[BaseException] = None

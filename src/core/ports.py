"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the agent, the code list, storage and
notification adapters so that the core can be reused with different backends
and driven by fakes in tests.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from core.models import ClaimResult, CommandResponse, Severity


class AgentPort(Protocol):
    """Command API of the automation agent."""

    async def send_command(self, command: str) -> CommandResponse:
        """Send one command; raise AgentTransportError when no answer arrives."""
        ...


class CodeSourcePort(Protocol):
    """Read-only list of candidate codes."""

    async def fetch_codes(self) -> List[str]:
        ...


class StoragePort(Protocol):
    """Processed-set operations required by the claim cycle."""

    def is_processed(self, code: str) -> bool:
        ...

    def mark_processed(self, code: str) -> None:
        """Add a code and persist before returning."""
        ...


class MetadataPort(Protocol):
    """Best-effort store metadata; every method returns None or [] on failure."""

    async def app_details(self, app_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def package_apps(self, sub_id: str) -> List[Optional[Dict[str, Any]]]:
        ...


class NotifierPort(Protocol):
    """Console and webhook reporting."""

    async def notify(
        self,
        severity: Severity,
        message: str,
        code: Optional[str] = None,
        result: Optional[ClaimResult] = None,
        wait: bool = False,
    ) -> None:
        """Log the message and queue it for the sink.

        With ``wait`` the call returns only after every queued delivery
        attempt finished; delivery failures are logged, never raised.
        """
        ...

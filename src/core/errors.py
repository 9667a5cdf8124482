"""Exception types shared by the core and adapters.

Everything derived from FatalError ends the process with exit code 1 once it
reaches the entry point.
"""

from __future__ import annotations


class FatalError(RuntimeError):
    """Condition after which no further cycle should run."""


class ConfigError(FatalError):
    pass


class StorageError(FatalError):
    pass


class AgentTransportError(FatalError):
    """The agent could not be reached or returned an unreadable body."""


class AgentUnreachableError(FatalError):
    """Reachability retries were exhausted."""


class AgentRejectedError(FatalError):
    """The agent answered but reported a non-success result."""

    def __init__(self, command: str, status_code: int, message: str) -> None:
        super().__init__(f"Agent rejected '{command}' (HTTP {status_code}): {message}")
        self.command = command
        self.status_code = status_code
        self.message = message


class CodeSourceError(RuntimeError):
    """The code list could not be fetched; the cycle defers to the next run."""

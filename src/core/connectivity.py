"""Connectivity gate in front of every claim cycle.

Phase A (reachability) retries a cheap command a bounded number of times.
Phase B (readiness) polls account status until no account is still
connecting. Only phase B's "still connecting" state is treated as transient;
a transport failure there means the agent went away and is fatal.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from core.config import AgentConfig
from core.errors import AgentRejectedError, AgentTransportError, AgentUnreachableError
from core.models import ReadinessResult
from core.parsers import parse_readiness_response
from core.ports import AgentPort

LOGGER = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ConnectivityGate:
    """Block until the agent answers and all managed accounts are online."""

    def __init__(
        self,
        agent: AgentPort,
        config: AgentConfig,
        attempts: int = 5,
        retry_delay: float = 5.0,
        poll_interval: float = 10.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._agent = agent
        self._config = config
        self._attempts = attempts
        self._retry_delay = retry_delay
        self._poll_interval = poll_interval
        self._sleep = sleep

    async def wait(self) -> ReadinessResult:
        await self.wait_until_reachable()
        return await self.wait_until_ready()

    async def wait_until_reachable(self) -> None:
        """Raise AgentUnreachableError after ``attempts`` failed probes."""

        command = self._config.command("stats")
        for attempt in range(1, self._attempts + 1):
            try:
                response = await self._agent.send_command(command)
            except AgentTransportError as exc:
                LOGGER.error("Error running '%s': %s", command, exc)
            else:
                if response.success:
                    LOGGER.info("Agent reachable")
                    return
                LOGGER.error("Non-success result for '%s': %s", command, response.message)

            if attempt < self._attempts:
                LOGGER.warning(
                    "Connection check failed, retry %s/%s in %s seconds...",
                    attempt,
                    self._attempts,
                    self._retry_delay,
                )
                await self._sleep(self._retry_delay)

        raise AgentUnreachableError(f"Can't connect to agent after {self._attempts} attempts")

    async def wait_until_ready(self) -> ReadinessResult:
        """Poll account status until every matched account is ready."""

        command = self._config.command("status", self._config.bots)
        while True:
            # Transport errors propagate: unreachable here is not transient.
            response = await self._agent.send_command(command)
            if not response.success:
                raise AgentRejectedError(command, response.status_code, response.message)

            readiness = parse_readiness_response(response.result)
            if readiness.all_ready:
                LOGGER.info("All %s account(s) ready", len(readiness.accounts))
                return readiness

            waiting = sorted(name for name, account in readiness.accounts.items() if not account.ready)
            LOGGER.info(
                "Waiting for %s to connect, checking again in %s seconds",
                ", ".join(waiting),
                self._poll_interval,
            )
            await self._sleep(self._poll_interval)

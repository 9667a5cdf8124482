"""Claim cycle: fetch, diff, submit, classify, notify.

The cycle enforces a strict order:
1) Fetch the candidate code list
2) Drop codes already in the processed set
3) Fast-exit when nothing is new
4) Reverse and cut the batch
5) Submit each code sequentially and classify the response
6) Announce the next scheduled run

This module is integration-agnostic. It only relies on ports, so the entry
point decides what a FATAL outcome means for the process.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional

from core.config import AgentConfig, ClaimConfig
from core.errors import AgentRejectedError, AgentTransportError, CodeSourceError
from core.license_keys import normalize_codes
from core.models import CycleOutcome, CycleReport, Severity
from core.parsers import is_rate_limited, parse_claim_response
from core.ports import AgentPort, CodeSourcePort, NotifierPort, StoragePort

LOGGER = logging.getLogger(__name__)

NEXT_RUN_FORMAT = "%b {day}, %Y, %I:%M %p"

Sleep = Callable[[float], Awaitable[None]]


def format_next_run(when: datetime) -> str:
    """Render ``when`` like ``Oct 5, 2026, 03:00 PM`` (day not zero-padded)."""

    return when.strftime(NEXT_RUN_FORMAT.replace("{day}", str(when.day)))


class ClaimCycle:
    """Runs one claim cycle per call to ``run``."""

    def __init__(
        self,
        agent: AgentPort,
        source: CodeSourcePort,
        storage: StoragePort,
        notifier: NotifierPort,
        agent_config: AgentConfig,
        claim_config: ClaimConfig,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._agent = agent
        self._source = source
        self._storage = storage
        self._notifier = notifier
        self._agent_config = agent_config
        self._claim = claim_config
        self._sleep = sleep
        self._clock = clock

    def select_batch(self, candidates: List[str]) -> List[str]:
        """Return the codes to submit this cycle.

        The list grows at the end, so reversing puts the most recently
        appended unprocessed codes first.
        """

        new_codes = [code for code in normalize_codes(candidates) if not self._storage.is_processed(code)]
        new_codes.reverse()
        return new_codes[: self._claim.batch_size]

    def next_run_time(self) -> datetime:
        return self._clock() + timedelta(hours=self._claim.interval_hours)

    async def run(self) -> CycleReport:
        """Process one batch and report what happened."""

        await self._notifier.notify(Severity.INFO, "Checking for new packages...")
        report = await self._process()
        if report.outcome is not CycleOutcome.FATAL:
            next_run = format_next_run(self.next_run_time())
            await self._notifier.notify(Severity.INFO, f"Next run scheduled for: {next_run}")
        return report

    async def _process(self) -> CycleReport:
        try:
            candidates = await self._source.fetch_codes()
        except CodeSourceError as exc:
            LOGGER.error("Fetching the code list failed: %s", exc)
            await self._notifier.notify(Severity.ERROR, "Could not fetch the code list, will retry in next run.")
            return CycleReport(outcome=CycleOutcome.COMPLETED, error=exc)

        batch = self.select_batch(candidates)
        if not batch:
            await self._notifier.notify(Severity.INFO, "No new packages found.")
            return CycleReport(outcome=CycleOutcome.NO_NEW_CODES)

        LOGGER.info("Submitting %s of %s candidate code(s)", len(batch), len(candidates))
        report = CycleReport(outcome=CycleOutcome.COMPLETED)
        for code in batch:
            error = await self._submit(code, report)
            if error is not None:
                report.outcome = CycleOutcome.FATAL
                report.error = error
                break
        return report

    async def _submit(self, code: str, report: CycleReport) -> Optional[BaseException]:
        """Submit one code; return the fatal error, if any."""

        command = self._agent_config.command("addlicense", self._agent_config.bots, code)
        # Fixed spacing before every submission, including the first.
        await self._sleep(self._claim.submit_delay)

        try:
            response = await self._agent.send_command(command)
        except AgentTransportError as exc:
            LOGGER.error("Error running '%s': %s", command, exc)
            await self._notifier.notify(
                Severity.ERROR,
                "An error occurred while connecting to ASF, check the logs for more information.",
                wait=True,
            )
            return exc

        if not response.success:
            error = AgentRejectedError(command, response.status_code, response.message)
            LOGGER.error("Got non-success result from ASF: %s", error)
            await self._notifier.notify(
                Severity.ERROR,
                "Got non-success result from ASF, check the logs for more information.",
                wait=True,
            )
            return error

        result = parse_claim_response(response.result)
        LOGGER.debug("Command: %s | Result: %s | Message: %s", command, response.result.strip(), response.message)

        if is_rate_limited(result):
            LOGGER.error("Rate limit exceeded for %s, not marking as processed", code)
            report.rate_limited.append(code)
            await self._notifier.notify(
                Severity.ERROR,
                "Rate limit exceeded while processing package. Will retry in next run.",
                code=code,
                result=result,
            )
            return None

        self._storage.mark_processed(code)
        report.processed.append(code)
        LOGGER.info("License added: %s", code)
        await self._notifier.notify(
            Severity.SUCCESS,
            "Processed a new package!",
            code=code,
            result=result if self._claim.show_account_status else None,
        )
        return None

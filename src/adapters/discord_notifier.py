"""Discord webhook notification adapter.

Every notification is logged to the console; those whose severity is enabled
are also turned into webhook embeds and handed to the dispatch queue, which
paces delivery.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from adapters.notification_formatting import (
    build_license_embed,
    build_metadata,
    build_payload,
    build_status_fields,
    build_text_embed,
)
from core.config import WebhookConfig
from core.dispatch import NotificationDispatchQueue
from core.license_keys import parse_license
from core.models import ClaimResult, NotificationJob, Severity
from core.ports import MetadataPort

LOGGER = logging.getLogger(__name__)

STORE_LOOKUP_WARNING = "Could not load metadata from the Steam store API, check the logs for more information."

LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.SUCCESS: logging.INFO,
}


def _consume_failure(future: asyncio.Future) -> None:
    # The queue already logged the failure; retrieving it silences asyncio.
    if not future.cancelled():
        future.exception()


class DiscordNotifier:
    """Notifier adapter that posts embeds to a Discord-compatible webhook."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        config: WebhookConfig,
        metadata: MetadataPort,
        queue: Optional[NotificationDispatchQueue] = None,
    ) -> None:
        self._http = http
        self._config = config
        self._metadata = metadata
        self._queue = queue if queue is not None else NotificationDispatchQueue(self.deliver)

    async def deliver(self, job: NotificationJob) -> None:
        """Post one payload; non-2xx answers count as failures."""

        response = await self._http.post(job.destination, json=job.payload, timeout=10)
        response.raise_for_status()

    def accepts(self, severity: Severity) -> bool:
        return self._config.enabled and severity in self._config.enabled_types

    async def notify(
        self,
        severity: Severity,
        message: str,
        code: Optional[str] = None,
        result: Optional[ClaimResult] = None,
        wait: bool = False,
    ) -> None:
        """Log the message and queue webhook embeds for it."""

        if code:
            LOGGER.log(LOG_LEVELS[severity], "%s [%s]", message, code)
        else:
            LOGGER.log(LOG_LEVELS[severity], "%s", message)

        if not self.accepts(severity):
            return

        embeds = await self._build_embeds(severity, message, code, result)
        futures = [
            self._queue.enqueue(NotificationJob(destination=self._config.url, payload=build_payload(embed)))
            for embed in embeds
        ]
        if wait:
            await asyncio.gather(*futures, return_exceptions=True)
            return
        for future in futures:
            future.add_done_callback(_consume_failure)

    async def join(self) -> None:
        await self._queue.join()

    async def _build_embeds(
        self,
        severity: Severity,
        message: str,
        code: Optional[str],
        result: Optional[ClaimResult],
    ) -> list[dict[str, Any]]:
        if not code:
            return [build_text_embed(message, severity)]

        license_ref = parse_license(code)
        if license_ref is None:
            embed = build_text_embed(message, severity)
            embed["description"] = f"Code: {code}"
            if result:
                embed["fields"] = build_status_fields(result)
            return [embed]

        if license_ref.kind == "app":
            details = [await self._metadata.app_details(license_ref.id)]
        else:
            # One embed per app in the package; an unknown package still gets one.
            details = await self._metadata.package_apps(license_ref.id) or [None]

        if any(entry is None for entry in details):
            await self.notify(Severity.WARN, STORE_LOOKUP_WARNING)

        return [
            build_license_embed(message, severity, build_metadata(license_ref, entry), result)
            for entry in details
        ]

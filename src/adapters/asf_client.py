"""ArchiSteamFarm IPC adapter.

Implements the core AgentPort over ASF's ``POST /Api/Command`` endpoint.
"""

from __future__ import annotations

import logging

import httpx

from core.config import AgentConfig
from core.errors import AgentTransportError
from core.models import CommandResponse

LOGGER = logging.getLogger(__name__)


class AsfClient:
    """Thin async wrapper that satisfies the AgentPort contract."""

    def __init__(self, http: httpx.AsyncClient, config: AgentConfig) -> None:
        self._http = http
        self._config = config

    def _endpoint(self) -> str:
        return f"{self._config.base_url.rstrip('/')}/Api/Command"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.password:
            headers["Authentication"] = self._config.password
        return headers

    async def send_command(self, command: str) -> CommandResponse:
        """Send one command and decode the response body.

        ASF answers rejected commands with a JSON body and a non-2xx status,
        so the status code is reported rather than raised.
        """

        try:
            response = await self._http.post(
                self._endpoint(),
                json={"Command": command},
                headers=self._headers(),
                timeout=self._config.timeout,
            )
        except httpx.HTTPError as exc:
            raise AgentTransportError(f"Request for '{command}' failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise AgentTransportError(
                f"Unreadable response for '{command}' (HTTP {response.status_code})"
            ) from exc
        if not isinstance(body, dict):
            raise AgentTransportError(f"Unexpected response for '{command}': {body!r}")

        LOGGER.debug("'%s' -> HTTP %s", command, response.status_code)
        result = body.get("Result")
        return CommandResponse(
            success=bool(body.get("Success")),
            result=result if isinstance(result, str) else "",
            message=str(body.get("Message") or ""),
            status_code=response.status_code,
        )

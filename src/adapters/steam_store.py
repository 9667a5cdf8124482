"""Steam store metadata adapter.

Implements the core MetadataPort over the public store API. Lookups are only
used to decorate notifications, so every failure degrades to "no metadata".
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

LOGGER = logging.getLogger(__name__)

STORE_API = "https://store.steampowered.com/api"


class SteamStoreMetadata:
    """Best-effort app and package lookups."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def _lookup(self, endpoint: str, param: str, item_id: str) -> Optional[dict[str, Any]]:
        try:
            response = await self._http.get(f"{STORE_API}/{endpoint}", params={param: item_id})
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.warning("An error occurred while reading %s for %s: %s", endpoint, item_id, exc)
            return None

        entry = body.get(str(item_id)) if isinstance(body, dict) else None
        if not isinstance(entry, dict) or not entry.get("success"):
            LOGGER.warning("Got non-success result from %s for %s", endpoint, item_id)
            return None
        data = entry.get("data")
        return data if isinstance(data, dict) else None

    async def app_details(self, app_id: str) -> Optional[dict[str, Any]]:
        return await self._lookup("appdetails", "appids", app_id)

    async def package_apps(self, sub_id: str) -> list[Optional[dict[str, Any]]]:
        """Return details for every app in a package, None for failed apps."""

        package = await self._lookup("packagedetails", "packageids", sub_id)
        if package is None:
            return []
        apps = package.get("apps") or []
        details: list[Optional[dict[str, Any]]] = []
        for app in apps:
            app_id = app.get("id") if isinstance(app, dict) else None
            if app_id is None:
                continue
            details.append(await self.app_details(str(app_id)))
        return details

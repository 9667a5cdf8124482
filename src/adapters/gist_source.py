"""GitHub gist code source.

Reads the newline-delimited code list from one file of a public gist.
"""

from __future__ import annotations

import httpx

from core.errors import CodeSourceError
from core.license_keys import split_code_list

GIST_API = "https://api.github.com/gists"
DEFAULT_FILE_NAME = "Steam Codes"


class GistCodeSource:
    """Satisfies the core CodeSourcePort."""

    def __init__(self, http: httpx.AsyncClient, gist_id: str, file_name: str = DEFAULT_FILE_NAME) -> None:
        self._http = http
        self._gist_id = gist_id
        self._file_name = file_name

    async def fetch_codes(self) -> list[str]:
        try:
            response = await self._http.get(
                f"{GIST_API}/{self._gist_id}",
                headers={"Accept": "application/vnd.github+json"},
            )
            response.raise_for_status()
            gist = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CodeSourceError(f"Failed to load gist {self._gist_id}: {exc}") from exc

        files = gist.get("files") if isinstance(gist, dict) else None
        entry = (files or {}).get(self._file_name)
        if not entry or not isinstance(entry.get("content"), str):
            raise CodeSourceError(f"Gist {self._gist_id} has no file named '{self._file_name}'")
        return split_code_list(entry["content"])

"""Helpers for working with license codes from the code list."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from core.models import LicenseRef

STORE_URL = "https://store.steampowered.com"

_PREFIXES = {"a": "app", "app": "app", "s": "sub", "sub": "sub"}
_CODE = re.compile(r"^(?:(?P<prefix>[A-Za-z]+)/)?(?P<id>\d+)$")


def parse_license(code: str) -> Optional[LicenseRef]:
    """Return the license a code refers to, or None if it is not recognised.

    ``a/`` and ``app/`` are apps, ``s/`` and ``sub/`` are packages, and a bare
    number is a package id.
    """

    match = _CODE.match(code.strip())
    if not match:
        return None
    prefix = match.group("prefix")
    if prefix is None:
        return LicenseRef(kind="sub", id=match.group("id"))
    kind = _PREFIXES.get(prefix.lower())
    if kind is None:
        return None
    return LicenseRef(kind=kind, id=match.group("id"))


def store_url(license_ref: LicenseRef) -> str:
    return f"{STORE_URL}/{license_ref.kind}/{license_ref.id}"


def normalize_codes(raw_codes: Iterable[str]) -> List[str]:
    """Trim codes, drop empties and collapse duplicates, keeping first order."""

    trimmed = (code.strip() for code in raw_codes)
    return list(dict.fromkeys(code for code in trimmed if code))


def split_code_list(content: str) -> List[str]:
    """Split a newline-delimited code list into trimmed, non-empty entries.

    Duplicates are kept so positions match the raw list.
    """

    trimmed = (line.strip() for line in content.split("\n"))
    return [code for code in trimmed if code]

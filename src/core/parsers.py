"""Parsers for the agent's free-text command output (core domain).

The agent answers commands with one human-readable line per managed account,
for example::

    <bot1> ID: sub/56865 | Status: OK | Items: app/339610, sub/56865
    <bot2> Bot is connecting to Steam network.

Both parsers are line-oriented: lines that do not match are skipped, and no
input makes them raise.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from core.models import AccountClaim, AccountReadiness, ClaimResult, ReadinessResult

RATE_LIMIT_MARKER = "RateLimitExceeded"
BARE_OK_STATUS = "OK -> Not available for this account"

# Field boundaries are the agent's contract:
# - account: inside the first pair of angle brackets, optionally after a quote
# - item: "word/digits" after an "ID:" label, followed later by "Status:"
# - status: rest of the line, stopping at an escaped "\n" or a closing quote
_CLAIM_LINE = re.compile(
    r"'?<(?P<account>[^>]+)>\s*"
    r"(?:.*ID:\s+(?P<item>\w+/\d+)\s.+Status:\s+)?"
    r"(?P<status>.*?)"
    r"(?:\\n)?"
    r"(?:'.*)?$",
    re.IGNORECASE,
)

# Status phrase ends before trailing punctuation or a ": detail" suffix.
_READINESS_LINE = re.compile(
    r"<(?P<account>[^>]+)>\s*(?P<status>[^:\r\n]*?)[\s.!,;]*(?::.*)?$",
)

_CONNECTING = re.compile(r"connecting to steam network", re.IGNORECASE)


def _lines(text: Optional[str]) -> List[str]:
    if not isinstance(text, str) or not text:
        return []
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def parse_claim_response(text: Optional[str]) -> ClaimResult:
    """Map each account in a claim response to its item reference and status.

    A bare ``OK`` is reported by the agent both for no-op successes and for
    entries the account already owns; a fresh activation always carries detail
    after it. Bare ``OK`` is therefore rewritten to ``BARE_OK_STATUS``.
    """

    result: Dict[str, AccountClaim] = {}
    for line in _lines(text):
        match = _CLAIM_LINE.search(line)
        if not match:
            continue
        status = match.group("status").strip()
        if status == "OK":
            status = BARE_OK_STATUS
        result[match.group("account")] = AccountClaim(
            item_ref=match.group("item"),
            status=status,
        )
    return result


def is_rate_limited(result: ClaimResult) -> bool:
    """Return True when any account hit the agent's rate limit."""

    return any(RATE_LIMIT_MARKER in claim.status for claim in result.values())


def parse_readiness_response(text: Optional[str]) -> ReadinessResult:
    """Parse a status response into per-account readiness.

    ``all_ready`` is vacuously True when no line matched; callers that need at
    least one account should check ``accounts`` as well.
    """

    accounts: Dict[str, AccountReadiness] = {}
    for line in _lines(text):
        match = _READINESS_LINE.search(line)
        if not match:
            continue
        status = match.group("status").strip()
        accounts[match.group("account")] = AccountReadiness(
            status_text=status,
            ready=not _CONNECTING.search(status),
        )
    return ReadinessResult(
        accounts=accounts,
        all_ready=all(account.ready for account in accounts.values()),
    )

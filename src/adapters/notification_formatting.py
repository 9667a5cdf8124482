"""Shared webhook formatting helpers.

Keeping formatting here prevents drift between plain and license
notifications and keeps the webhook payload shape in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from core.license_keys import store_url
from core.models import ClaimResult, LicenseRef, Severity

USERNAME = "ASFClaim"
AVATAR_URL = "https://raw.githubusercontent.com/JustArchiNET/ArchiSteamFarm/main/resources/ASF_512x512.png"
PLACEHOLDER_IMAGE = "https://via.placeholder.com/460x215.jpg?text=Cant+load+image"

COLORS = {
    Severity.ERROR: 16711680,  # #ff0000
    Severity.WARN: 16750899,  # #ff9933
    Severity.INFO: 255,  # #0000ff
    Severity.SUCCESS: 65280,  # #00ff00
}


@dataclass(frozen=True)
class StoreMetadata:
    """Display metadata for one app, with placeholders for missing values."""

    name: str
    type: str
    image_url: str
    app_id: Optional[str]
    sub_id: Optional[str]


def build_metadata(license_ref: LicenseRef, details: Optional[dict[str, Any]]) -> StoreMetadata:
    """Merge store details over placeholder metadata for a license."""

    details = details or {}
    app_id = license_ref.id if license_ref.kind == "app" else None
    if details.get("steam_appid"):
        app_id = str(details["steam_appid"])
    return StoreMetadata(
        name=details.get("name") or "Can't load name",
        type=details.get("type") or "Can't load type",
        image_url=details.get("header_image") or PLACEHOLDER_IMAGE,
        app_id=app_id,
        sub_id=license_ref.id if license_ref.kind == "sub" else None,
    )


def format_description(meta: StoreMetadata) -> str:
    if meta.app_id:
        id_line = f"AppID: [{meta.app_id}]({store_url(LicenseRef('app', meta.app_id))})"
    else:
        id_line = "AppID: Can't load AppID"
    if meta.sub_id:
        id_line += f" (from SubId: [{meta.sub_id}]({store_url(LicenseRef('sub', meta.sub_id))}))"
    return "\n".join([f"Name: {meta.name}", f"Type: {meta.type}", id_line])


def group_accounts_by_status(result: ClaimResult) -> dict[str, list[str]]:
    """Group account names under their status, keeping first-seen order."""

    grouped: dict[str, list[str]] = {}
    for account, claim in result.items():
        grouped.setdefault(claim.status, []).append(account)
    return grouped


def build_status_fields(result: ClaimResult) -> list[dict[str, str]]:
    """One embed field per distinct status listing the accounts that got it."""

    fields = [
        {"name": f"{status}:", "value": "\n".join(accounts)}
        for status, accounts in group_accounts_by_status(result).items()
    ]
    # A single group would only repeat every account name.
    if len(fields) == 1:
        fields[0]["value"] = "Status for all accounts"
    return fields


def build_text_embed(title: str, severity: Severity) -> dict[str, Any]:
    return {"title": title, "color": COLORS[severity]}


def build_license_embed(
    title: str,
    severity: Severity,
    meta: StoreMetadata,
    result: Optional[ClaimResult] = None,
) -> dict[str, Any]:
    """Embed for a notification about one license, with optional account fields."""

    embed = build_text_embed(title, severity)
    embed["image"] = {"url": meta.image_url}
    embed["description"] = format_description(meta)
    embed["fields"] = build_status_fields(result) if result else []
    return embed


def build_payload(embed: dict[str, Any]) -> dict[str, Any]:
    return {"embeds": [embed], "username": USERNAME, "avatar_url": AVATAR_URL}

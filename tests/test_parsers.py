from __future__ import annotations

from core.models import AccountClaim
from core.parsers import (
    BARE_OK_STATUS,
    is_rate_limited,
    parse_claim_response,
    parse_readiness_response,
)


def test_bare_ok_is_reclassified() -> None:
    result = parse_claim_response("'<bot1> OK'")
    assert result == {"bot1": AccountClaim(item_ref=None, status=BARE_OK_STATUS)}


def test_claim_line_with_item_reference() -> None:
    text = "<bot1> ID: sub/56865 | Status: OK | Items: app/339610, sub/56865"
    result = parse_claim_response(text)
    assert result["bot1"].item_ref == "sub/56865"
    assert result["bot1"].status == "OK | Items: app/339610, sub/56865"


def test_id_label_is_case_insensitive() -> None:
    result = parse_claim_response("<bot1> id: app/10 | status: Fail/InvalidPackage")
    assert result["bot1"].item_ref == "app/10"
    assert result["bot1"].status == "Fail/InvalidPackage"


def test_multiple_accounts_and_noise_lines() -> None:
    text = "\n".join(
        [
            "Command output follows",
            "<bot1> ID: app/10 | Status: OK | Items: app/10",
            "",
            "<bot2> ID: app/10 | Status: Fail/AlreadyPurchased",
            "garbage without brackets",
        ]
    )
    result = parse_claim_response(text)
    assert set(result) == {"bot1", "bot2"}
    assert result["bot2"].status == "Fail/AlreadyPurchased"


def test_escaped_newline_terminates_status() -> None:
    result = parse_claim_response("'<bot1> ID: sub/1 | Status: OK/NoDetail\\n'")
    assert result["bot1"].status == "OK/NoDetail"


def test_rate_limit_in_any_account_marks_whole_response() -> None:
    text = "\n".join(
        [
            "<bot1> ID: sub/1 | Status: OK | Items: app/5",
            "<bot2> ID: sub/1 | Status: Fail/RateLimitExceeded",
        ]
    )
    result = parse_claim_response(text)
    assert is_rate_limited(result)


def test_rate_limit_marker_is_case_sensitive() -> None:
    result = parse_claim_response("<bot1> ID: sub/1 | Status: ratelimitexceeded")
    assert not is_rate_limited(result)


def test_parsers_are_total() -> None:
    for text in (None, "", "<>", "<<<>>>", "\x00\n\r\n'", "<bot1", "'" * 50):
        assert isinstance(parse_claim_response(text), dict)
        assert parse_readiness_response(text).all_ready is True


def test_readiness_marks_connecting_accounts() -> None:
    text = "\n".join(
        [
            "<bot1> Bot is connecting to Steam network.",
            "<bot2> Bot is idling: farming finished",
        ]
    )
    readiness = parse_readiness_response(text)
    assert readiness.accounts["bot1"].ready is False
    assert readiness.accounts["bot1"].status_text == "Bot is connecting to Steam network"
    assert readiness.accounts["bot2"].ready is True
    assert readiness.accounts["bot2"].status_text == "Bot is idling"
    assert readiness.all_ready is False


def test_readiness_pattern_ignores_case() -> None:
    readiness = parse_readiness_response("<bot1> CONNECTING TO STEAM NETWORK!")
    assert readiness.all_ready is False


def test_readiness_all_ready() -> None:
    readiness = parse_readiness_response("<bot1> Bot is not farming anything.\n<bot2> Bot is farming.")
    assert set(readiness.accounts) == {"bot1", "bot2"}
    assert readiness.all_ready is True


def test_readiness_without_matches_is_vacuously_ready() -> None:
    readiness = parse_readiness_response("No bots are defined")
    assert readiness.accounts == {}
    assert readiness.all_ready is True


def test_only_newlines_separate_lines() -> None:
    result = parse_claim_response("<bot1> Fine\x0b<bot2> OK\r\n<bot3> OK")

    assert list(result) == ["bot1", "bot3"]
    assert result["bot1"].status == "Fine\x0b<bot2> OK"
    assert result["bot3"].status == BARE_OK_STATUS

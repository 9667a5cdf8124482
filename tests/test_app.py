from __future__ import annotations

import functools
import json

import httpx
import pytest

import app
from core.config import ClaimConfig
from core.connectivity import ConnectivityGate

HOOK = "https://discord.invalid/api/webhooks/1/token"


class FakeBackend:
    """Answers agent commands, gist reads and webhook posts in one transport."""

    def __init__(self, gist_contents=("",), rejected_codes=(), reachable=True) -> None:
        self.commands: list[str] = []
        self.webhooks: list[dict] = []
        self.requests = 0
        self._gist_contents = list(gist_contents)
        self._rejected = set(rejected_codes)
        self._reachable = reachable

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests += 1
        if request.url.host == "api.github.com":
            content = self._gist_contents.pop(0) if len(self._gist_contents) > 1 else self._gist_contents[0]
            return httpx.Response(200, json={"files": {"Steam Codes": {"content": content}}})
        if request.url.host == "discord.invalid":
            self.webhooks.append(json.loads(request.content))
            return httpx.Response(204)
        if request.url.path == "/Api/Command":
            return self._command(request)
        return httpx.Response(500)

    def _command(self, request: httpx.Request) -> httpx.Response:
        command = json.loads(request.content)["Command"]
        self.commands.append(command)
        if not self._reachable:
            raise httpx.ConnectError("connection refused", request=request)
        if command.startswith("!status"):
            return httpx.Response(200, json={"Success": True, "Result": "<asf> Bot is not farming anything."})
        if command.startswith("!addlicense"):
            code = command.rsplit(" ", 1)[-1]
            if code in self._rejected:
                return httpx.Response(401, json={"Success": False, "Message": "Unauthorized"})
            return httpx.Response(200, json={"Success": True, "Result": f"<asf> ID: {code} | Status: OK/NoDetail"})
        return httpx.Response(200, json={"Success": True, "Result": "stats"})


@pytest.fixture
def backend_factory(monkeypatch, tmp_path):
    def install(backend: FakeBackend, **overrides) -> FakeBackend:
        values = {
            "ASF_BASE_URL": "http://asf.local:1242",
            "ASF_PASS": "",
            "ASF_COMMAND_PREFIX": "!",
            "ASF_BOTS": "asf",
            "ASF_CLAIM_INTERVAL": "3",
            "GIST_ID": "abc",
            "WEBHOOK_URL": None,
            "WEBHOOK_ENABLED_TYPES": "error;warn;success",
            "STORAGE_PATH": str(tmp_path),
            "LOG_FILE": "",
        }
        values.update(overrides)
        for name, value in values.items():
            monkeypatch.setattr(app.settings, name, value)
        monkeypatch.setattr(app, "build_http_client", lambda: httpx.AsyncClient(transport=httpx.MockTransport(backend)))
        monkeypatch.setattr(app, "ClaimConfig", functools.partial(ClaimConfig, submit_delay=0))
        monkeypatch.setattr(app, "ConnectivityGate", functools.partial(ConnectivityGate, retry_delay=0, poll_interval=0))
        return backend

    return install


def _processed(tmp_path) -> list[str]:
    with open(tmp_path / "processedLicenses", encoding="utf-8") as handle:
        return json.load(handle)


def test_once_exits_cleanly_after_one_cycle(backend_factory, tmp_path) -> None:
    backend = backend_factory(FakeBackend(gist_contents=["a/1\na/2"]))

    app.main(["once"])

    assert backend.commands == ["!stats", "!status asf", "!addlicense asf a/2", "!addlicense asf a/1"]
    assert _processed(tmp_path) == ["a/2", "a/1"]


def test_fatal_cycle_exits_with_one(backend_factory, tmp_path) -> None:
    backend = backend_factory(FakeBackend(gist_contents=["a/1"], rejected_codes={"a/1"}))

    with pytest.raises(SystemExit) as excinfo:
        app.main(["once"])

    assert excinfo.value.code == 1
    assert backend.commands[-1] == "!addlicense asf a/1"
    assert _processed(tmp_path) == []


@pytest.mark.parametrize("interval", ["abc", "0", "-2"])
def test_bad_interval_exits_before_any_request(backend_factory, monkeypatch, interval) -> None:
    backend = backend_factory(FakeBackend(), ASF_CLAIM_INTERVAL=interval)
    clients: list[int] = []
    monkeypatch.setattr(app, "build_http_client", lambda: clients.append(1))

    with pytest.raises(SystemExit) as excinfo:
        app.main(["run"])

    assert excinfo.value.code == 1
    assert clients == []
    assert backend.requests == 0


def test_check_returns_zero_when_reachable_and_ready(backend_factory) -> None:
    backend = backend_factory(FakeBackend())

    app.main(["check"])

    assert backend.commands == ["!stats", "!status asf"]


def test_readiness_is_checked_before_every_cycle(backend_factory, monkeypatch) -> None:
    backend = backend_factory(FakeBackend(gist_contents=["a/1", "a/1\na/2"], rejected_codes={"a/2"}))
    sleeps: list[float] = []

    async def fake_interval_sleep(claim_config) -> None:
        sleeps.append(claim_config.interval_hours)

    monkeypatch.setattr(app, "_sleep_until_next_cycle", fake_interval_sleep)

    with pytest.raises(SystemExit) as excinfo:
        app.main(["run"])

    assert excinfo.value.code == 1
    assert sleeps == [3.0]
    assert backend.commands == [
        "!stats",
        "!status asf",
        "!addlicense asf a/1",
        "!status asf",
        "!addlicense asf a/2",
    ]


def test_unreachable_agent_sends_stop_notification(backend_factory) -> None:
    backend = backend_factory(
        FakeBackend(reachable=False),
        WEBHOOK_URL=HOOK,
        WEBHOOK_ENABLED_TYPES="error",
    )

    with pytest.raises(SystemExit) as excinfo:
        app.main(["check"])

    assert excinfo.value.code == 1
    assert backend.commands == ["!stats"] * 5
    titles = [payload["embeds"][0]["title"] for payload in backend.webhooks]
    assert len(titles) == 1
    assert titles[0].startswith("ASFClaim stopped:")

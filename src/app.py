"""Application entry point for the asfclaim service."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.asf_client import AsfClient
from adapters.discord_notifier import DiscordNotifier
from adapters.gist_source import GistCodeSource
from adapters.json_storage import JsonProcessedStore
from adapters.steam_store import SteamStoreMetadata
from client import build_http_client
from core.config import AgentConfig, ClaimConfig, WebhookConfig, parse_interval_hours
from core.connectivity import ConnectivityGate
from core.cycle import ClaimCycle
from core.errors import FatalError
from core.models import CycleOutcome, Severity

NAME = "ASFCLAIM"
FONT = "tarty-1"

# Upper bound for pending notifications on the way out; delivery is best-effort.
FLUSH_TIMEOUT = 5.0

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values() -> list[str]:
    if not settings.LOG_REDACT:
        return []
    values = []
    for name in settings.LOG_REDACT_VARIABLES:
        value = os.getenv(name)
        if value and value.lower() != "none":
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(), fmt=fmt, datefmt=datefmt)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    if settings.LOG_FILE:
        path = settings.LOG_FILE
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers)
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def _agent_config() -> AgentConfig:
    return AgentConfig(
        base_url=settings.ASF_BASE_URL,
        password=settings.ASF_PASS or None,
        command_prefix=settings.ASF_COMMAND_PREFIX,
        bots=settings.ASF_BOTS,
    )


async def _sleep_until_next_cycle(claim_config: ClaimConfig) -> None:
    await asyncio.sleep(claim_config.interval_hours * 60 * 60)


async def _flush(notifier: DiscordNotifier) -> None:
    try:
        await asyncio.wait_for(notifier.join(), timeout=FLUSH_TIMEOUT)
    except asyncio.TimeoutError:
        LOGGER.warning("Gave up waiting for pending notifications")


async def _serve(command: str) -> int:
    """Run the requested command and return the process exit code."""

    # Configuration errors are fatal before any polling begins.
    interval_hours = parse_interval_hours(settings.ASF_CLAIM_INTERVAL)
    agent_config = _agent_config()
    claim_config = ClaimConfig(
        interval_hours=interval_hours,
        show_account_status=settings.WEBHOOK_SHOW_ACCOUNT_STATUS,
    )
    webhook_config = WebhookConfig(
        url=settings.WEBHOOK_URL,
        enabled_types=Severity.parse_many(settings.WEBHOOK_ENABLED_TYPES),
    )
    LOGGER.info("target = %s", agent_config.base_url)

    async with build_http_client() as http:
        agent = AsfClient(http, agent_config)
        notifier = DiscordNotifier(http, webhook_config, SteamStoreMetadata(http))
        gate = ConnectivityGate(agent, agent_config)
        try:
            if command == "check":
                await gate.wait()
                return 0
            return await _claim_loop(http, agent, notifier, gate, agent_config, claim_config, command == "once")
        except FatalError as exc:
            LOGGER.error("Fatal: %s", exc)
            await notifier.notify(Severity.ERROR, f"ASFClaim stopped: {exc}", wait=True)
            return 1
        finally:
            await _flush(notifier)


async def _claim_loop(
    http,
    agent: AsfClient,
    notifier: DiscordNotifier,
    gate: ConnectivityGate,
    agent_config: AgentConfig,
    claim_config: ClaimConfig,
    once: bool,
) -> int:
    storage = JsonProcessedStore(settings.STORAGE_PATH)
    storage.load()
    source = GistCodeSource(http, settings.GIST_ID)
    await storage.migrate_legacy_marker(source.fetch_codes)
    LOGGER.info("%s processed code(s) loaded", len(storage))

    enabled = [severity.value for severity in Severity if notifier.accepts(severity)]
    if enabled:
        await notifier.notify(Severity.INFO, f"Discord hook enabled! With types: {', '.join(enabled)}")
    await notifier.notify(Severity.INFO, "ASFClaim started!")

    cycle = ClaimCycle(agent, source, storage, notifier, agent_config, claim_config)
    await gate.wait_until_reachable()

    # Each cycle is awaited to completion before the next sleep, so cycles
    # never overlap.
    while True:
        await gate.wait_until_ready()
        report = await cycle.run()
        if report.outcome is CycleOutcome.FATAL:
            LOGGER.error("Cycle stopped: %s", report.error)
            return 1
        LOGGER.info(
            "Cycle finished: %s processed, %s rate limited",
            len(report.processed),
            len(report.rate_limited),
        )
        if once:
            return 0
        await _sleep_until_next_cycle(claim_config)


def _run(command: str) -> int:
    _print_banner()
    _configure_logging()
    LOGGER.info("Starting asfclaim")
    try:
        return asyncio.run(_serve(command))
    except FatalError as exc:
        LOGGER.error("Fatal: %s", exc)
        return 1
    except KeyboardInterrupt:
        LOGGER.info("Interrupted by user")
        return 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="asfclaim")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Claim new packages every ASF_CLAIM_INTERVAL hours")
    subparsers.add_parser("once", help="Run a single claim cycle and exit")
    subparsers.add_parser("check", help="Check that ASF is reachable and all bots are connected")

    args = parser.parse_args(argv)
    exit_code = _run(args.command or "run")
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()

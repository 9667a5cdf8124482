"""Static configuration for asfclaim.

All settings come from environment variables; a local .env file is read
first so secrets stay out of the repo.
"""

import os

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def _env(name: str, default: str) -> str:
    # Empty values fall back to the default, matching unset variables.
    return os.getenv(name) or default


def _env_bool(name: str, default: bool) -> bool:
    return _env(name, "true" if default else "false").strip().lower() in {"1", "true", "yes", "on"}


# Agent (ArchiSteamFarm IPC) connection.
ASF_PROTOCOL = _env("ASF_PROTOCOL", "http")
ASF_HOST = _env("ASF_HOST", "localhost")
ASF_PORT = _env("ASF_PORT", "1242")
ASF_BASE_URL = f"{ASF_PROTOCOL}://{ASF_HOST}:{ASF_PORT}"
ASF_PASS = _env("ASF_PASS", "")
ASF_COMMAND_PREFIX = _env("ASF_COMMAND_PREFIX", "!")
ASF_BOTS = _env("ASF_BOTS", "asf")

# Hours between cycles; validated at startup because a bad value is fatal.
ASF_CLAIM_INTERVAL = _env("ASF_CLAIM_INTERVAL", "3")

# Code list source.
GIST_ID = _env("GIST_ID", "e8c5cf365d816f2640242bf01d8d3675")

# Webhook notifications. "none" disables the sink entirely.
_webhook_url = _env("WEBHOOK_URL", "none")
WEBHOOK_URL = None if _webhook_url.lower() == "none" else _webhook_url
WEBHOOK_ENABLED_TYPES = _env("WEBHOOK_ENABLEDTYPES", "error;warn;success")
WEBHOOK_SHOW_ACCOUNT_STATUS = _env_bool("WEBHOOK_SHOWACCOUNTSTATUS", True)

# Processed set and legacy marker live here.
STORAGE_PATH = _env("STORAGE_PATH", os.path.join(".", "storage"))

# Logging configuration.
LOG_LEVEL = _env("LOG_LEVEL", "INFO")
LOG_FILE = _env("LOG_FILE", "")
LOG_REDACT = _env_bool("LOG_REDACT", True)
LOG_REDACT_VARIABLES = ("ASF_PASS", "WEBHOOK_URL")

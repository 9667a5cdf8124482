from __future__ import annotations

import pytest

from core.config import AgentConfig, ClaimConfig


@pytest.fixture
def agent_config() -> AgentConfig:
    return AgentConfig(base_url="http://asf.local:1242", password=None, command_prefix="!", bots="asf")


@pytest.fixture
def claim_config() -> ClaimConfig:
    return ClaimConfig(interval_hours=3, show_account_status=True)

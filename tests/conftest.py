"""Shared fixtures for slashbot tests."""

import time
from urllib.parse import urlencode

import pytest

from slashbot.config import Config
from slashbot.security import compute_signature

SIGNING_SECRET = "8f742231b10e8888abcd99yyyzzz85a5"

_ENV_VARS = (
    "SLASHBOT_ENV",
    "SLASHBOT_HOST",
    "SLASHBOT_PORT",
    "SLASHBOT_WEBHOOK_PATH",
    "SLASHBOT_REPLY_TIMEOUT",
    "SLASHBOT_SLACK_SIGNING_SECRET",
    "SLASHBOT_LOG_DIR",
    "SLASHBOT_LOG_LEVEL",
    "SLACK_SIGNING_SECRET",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of config-driven tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def signing_secret():
    return SIGNING_SECRET


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / "base.yaml").write_text(
        "port: 8080\n"
        "reply_timeout: 2\n"
        f"log_dir: {tmp_path / 'logs'}\n"
        "slack:\n"
        f"  signing_secret: {SIGNING_SECRET}\n"
    )
    return tmp_path


@pytest.fixture
def config(config_dir):
    return Config(config_dir=config_dir, env="test")


@pytest.fixture
def form_body():
    """Build a urlencoded slash-command body."""
    def _build(text="", response_url="http://127.0.0.1/reply", **extra):
        fields = {
            "command": "/bot",
            "text": text,
            "response_url": response_url,
            "trigger_id": "13345224609.738474920.8088930838d88f008e0",
            "user_id": "U2147483697",
            "api_app_id": "A123456",
            "team_id": "T0001",
            "channel_id": "C2147483705",
        }
        fields.update(extra)
        return urlencode(fields).encode("utf-8")
    return _build


@pytest.fixture
def signed_headers():
    """Headers for a correctly signed form request."""
    def _build(body, secret=SIGNING_SECRET, timestamp=None):
        if timestamp is None:
            timestamp = str(int(time.time()))
        return {
            "Content-Type": "application/x-www-form-urlencoded",
            "X-Slack-Request-Timestamp": timestamp,
            "X-Slack-Signature": compute_signature(secret, timestamp, body),
        }
    return _build

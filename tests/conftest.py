import os
import tempfile
from unittest.mock import MagicMock

import pytest

# Логер создаётся при импорте, логи тестов пишем во временную папку
os.environ.setdefault("CONF_LOG_DIR", tempfile.mkdtemp(prefix="conf-logs-"))

from config import ConfirmationSettings  # noqa: E402

STEAM_ID = "76561197960287930"
IDENTITY_SECRET = "c2VjcmV0LWtleS0xMjM0NQ=="


def make_response(status_code=200, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


class FakeSleep:
    """Записывает задержки вместо реального ожидания"""

    def __init__(self):
        self.delays = []
        self.callbacks = []

    def on_call(self, callback):
        """callback(index) вызывается при каждом ожидании"""
        self.callbacks.append(callback)

    async def __call__(self, delay):
        self.delays.append(delay)
        for callback in self.callbacks:
            callback(len(self.delays) - 1)


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def http_session():
    session = MagicMock()
    session.cookies = MagicMock()
    return session


@pytest.fixture
def settings():
    return ConfirmationSettings(
        steam_id=STEAM_ID,
        identity_secret=IDENTITY_SECRET,
        wait_time_ms=10000,
        web_cookies=["sessionid=abc", "steamLoginSecure=xyz"],
    )


@pytest.fixture
def response():
    return make_response

"""
Shared test fixtures for the microprediction client test suite.
All tests run offline against a fake aiohttp session.
"""

import json

import aiohttp
import pytest

from microprediction.config import Config
from microprediction.core.client import MicropredictionClient


class FakeResponse:
    def __init__(self, status: int = 200, body=b"null", charset: str = "utf-8"):
        self.status = status
        self.charset = charset
        self._body = body.encode("utf-8") if isinstance(body, str) else body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Records every request and answers from a queue of canned replies.

    A reply is a JSON-serialisable value or a raw str/bytes body with a
    status, or an exception instance to raise.
    """

    def __init__(self):
        self.calls = []
        self.replies = []
        self.closed = False

    def reply(self, payload=None, status: int = 200, raw=None, charset: str = "utf-8"):
        body = raw if raw is not None else json.dumps(payload)
        self.replies.append((status, body, charset))

    def fail(self, exc: Exception):
        self.replies.append(exc)

    def request(self, method, url, params=None):
        self.calls.append({"method": method, "url": url, "params": params})
        if not self.replies:
            raise AssertionError(f"unexpected request {method} {url}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        status, body, charset = reply
        return FakeResponse(status, body, charset)

    async def close(self):
        self.closed = True

    @property
    def last(self) -> dict:
        return self.calls[-1]


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def make_config():
    """Factory for Config instances with test defaults."""

    def _factory(**overrides):
        defaults = {
            "num_predictions": 5,
            "delays": (70, 310, 910, 3555),
            "min_balance": -1.0,
            "min_len": 12,
            "write_key": "test-write-key",
            "base_url": "http://api.test",
        }
        defaults.update(overrides)
        return Config(**defaults)

    return _factory


@pytest.fixture
def config(make_config):
    return make_config()


@pytest.fixture
def client(config, session):
    return MicropredictionClient(config, session=session)


@pytest.fixture
def anonymous_client(make_config, session):
    return MicropredictionClient(make_config(write_key=None), session=session)


@pytest.fixture
def connection_error():
    return aiohttp.ClientConnectionError("connection refused")

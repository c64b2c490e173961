"""
Shared fixtures for console tests

Remote endpoints are served by httpx.MockTransport handlers; persistence
uses the in-memory adapter, optionally wrapped to fail on selected keys.
"""
import json
from typing import Callable, Dict, Iterable, List, Optional

import httpx
import pytest

from contentops.core.config import Settings
from contentops.core.http_client import HTTPClient, HTTPClientConfig
from contentops.core.storage import InMemoryKeyValueStore, StorageError


class FailingKeyValueStore(InMemoryKeyValueStore):
    """In-memory store whose writes (and optionally reads) fail for chosen keys"""

    def __init__(
        self,
        initial: Optional[Dict[str, str]] = None,
        fail_set: Iterable[str] = (),
        fail_get: Iterable[str] = (),
        fail_remove: Iterable[str] = ()
    ):
        super().__init__(initial)
        self.fail_set = set(fail_set)
        self.fail_get = set(fail_get)
        self.fail_remove = set(fail_remove)
        self.set_calls: List[str] = []

    async def get(self, key):
        if key in self.fail_get:
            raise StorageError(f"simulated read failure for {key}")
        return await super().get(key)

    async def set(self, key, value):
        self.set_calls.append(key)
        if key in self.fail_set:
            raise StorageError(f"simulated write failure for {key}")
        await super().set(key, value)

    async def remove(self, key):
        if key in self.fail_remove:
            raise StorageError(f"simulated delete failure for {key}")
        await super().remove(key)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served"""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)

    def json_bodies(self) -> List[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def settings():
    """Settings isolated from the environment"""
    return Settings(
        storage_backend="memory",
        airtable_api_url="https://airtable.test/v0",
        http_timeout=5.0,
        _env_file=None,
    )


@pytest.fixture
def storage():
    return FailingKeyValueStore()


@pytest.fixture
def make_http_client(settings):
    """Factory for HTTP clients backed by a recording mock transport"""
    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        transport = RecordingTransport(handler)
        return HTTPClient(HTTPClientConfig(settings), transport=transport), transport
    return _make


@pytest.fixture
def ok_webhook_client(make_http_client):
    """HTTP client whose every request answers 200"""
    return make_http_client(lambda request: httpx.Response(200, json={"ok": True}))

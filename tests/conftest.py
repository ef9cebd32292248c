"""
Pytest configuration and shared fixtures for uploader tests.

This module provides reusable fixtures and a fake precisionFDA service
built on requests-mock.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
import re
import threading
from typing import Any

import pytest
import requests_mock

from pfdauploader.config import ClientSettings
from pfdauploader.io import HttpClient
from pfdauploader.logging import SilentLogger, set_global_logger

BASE_URL = "https://pfda.test"
STORAGE_URL = "https://storage.test/chunks"


@pytest.fixture(autouse=True)
def silent_global_logger() -> Iterator[None]:
    """Reset the global logger so CLI tests do not leak verbosity."""
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def settings() -> ClientSettings:
    """Provide settings pointing at the fake service."""
    return ClientSettings(base_url=BASE_URL, key="test-key")


@pytest.fixture
def client(settings: ClientSettings) -> Iterator[HttpClient]:
    """Provide an HTTP client bound to the fake service settings."""
    with HttpClient(settings, pool_size=100) as http:
        yield http


@pytest.fixture
def mock_http() -> Iterator[requests_mock.Mocker]:
    """Provide an active requests-mock Mocker."""
    with requests_mock.Mocker() as m:
        yield m


def _payload(size: int) -> bytes:
    pattern = bytes(range(251))
    return (pattern * (size // len(pattern) + 1))[:size]


@pytest.fixture
def make_payload():
    """
    Factory fixture for deterministic test bytes.

    Usage:
        data = make_payload(1024)
    """
    return _payload


class FakeService:
    """In-memory precisionFDA upload endpoints.

    Records every chunk descriptor and every chunk body it receives.
    Endpoints can be overridden on the mocker after construction.
    """

    def __init__(
        self,
        mocker: requests_mock.Mocker,
        base_url: str = BASE_URL,
        entity_id: str = "file-Bk0kjkQ0ZP01x1KJ5vPqxgp0-1",
    ) -> None:
        self.mocker = mocker
        self.base_url = base_url
        self.entity_id = entity_id
        self.descriptors: list[dict[str, Any]] = []
        self.bodies: dict[int, bytes] = {}
        self.put_headers: list[dict[str, str]] = []
        self._lock = threading.Lock()

        for kind in ("file", "asset"):
            mocker.post(f"{base_url}/api/create_{kind}", json={"id": entity_id})
            mocker.post(f"{base_url}/api/close_{kind}", json={})
        mocker.post(f"{base_url}/api/get_upload_url", json=self._destination)
        mocker.put(re.compile(re.escape(STORAGE_URL) + r"/.*"), text=self._store)

    def _destination(self, request, context) -> dict[str, Any]:
        descriptor = request.json()
        with self._lock:
            self.descriptors.append(descriptor)
        return {
            "url": f"{STORAGE_URL}/{descriptor['id']}/{descriptor['index']}?sig=abc",
            "headers": {
                "Content-Type": "application/octet-stream",
                "X-Chunk-Md5": descriptor["md5"],
            },
        }

    def _store(self, request, context) -> str:
        index = int(request.path.rstrip("/").rsplit("/", 1)[-1])
        with self._lock:
            self.bodies[index] = request.body or b""
            self.put_headers.append(dict(request.headers))
        return ""

    def calls(self, path_suffix: str) -> list:
        """Requests whose URL path ends with path_suffix, in order."""
        return [r for r in self.mocker.request_history if r.path.endswith(path_suffix)]

    def history_index(self, path_suffix: str) -> int:
        """Position of the first request whose path ends with path_suffix."""
        for position, r in enumerate(self.mocker.request_history):
            if r.path.endswith(path_suffix):
                return position
        raise AssertionError(f"no request to {path_suffix}")

    def reassembled(self) -> bytes:
        return b"".join(self.bodies[i] for i in sorted(self.bodies))

    def triples(self) -> list[tuple[int, str, int]]:
        return sorted((d["index"], d["md5"], d["size"]) for d in self.descriptors)


@pytest.fixture
def fake_service(mock_http: requests_mock.Mocker) -> FakeService:
    """Provide a fake precisionFDA service on top of requests-mock."""
    return FakeService(mock_http)

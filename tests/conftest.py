"""Shared pytest configuration for the project test suite."""
from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

import pytest


# Ensure the repository root (which contains the ``balance_monitor`` package) is importable.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class DummyResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, payload=None, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class DummySession:
    """Records requests and replays queued responses in order."""

    def __init__(self, responses: List[DummyResponse] | None = None):
        self.responses = list(responses or [])
        self.calls: List[Dict] = []

    def _next(self, call: Dict):
        self.calls.append(call)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def request(self, method, url, **kwargs):
        return self._next({"method": method, "url": url, **kwargs})

    def post(self, url, **kwargs):
        return self._next({"method": "POST", "url": url, **kwargs})


@pytest.fixture
def utc_now() -> datetime:
    return datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_response():
    return DummyResponse


@pytest.fixture
def make_session():
    def _make(*responses):
        return DummySession(list(responses))
    return _make

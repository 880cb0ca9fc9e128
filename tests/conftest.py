"""Shared test fixtures for the llmwhisperer_client test suite.

WHY: Most tests need the same in-process stand-in for the LLMWhisperer v2
service and the same sample extraction payload. Centralizing them keeps
the per-module tests focused on behavior.

HOW: FakeWhisperService is an httpx.MockTransport handler that routes by
path and method, keeps webhooks in a dict, and plays back a scripted
sequence of job statuses. VirtualClock provides a clock/sleep pair so
polling tests never sleep for real.

RULES:
- The real service is never called (except in test_e2e.py, when a key is set)
- Status scripts repeat their last entry once exhausted
- An int in a status script makes that status call fail with that HTTP code
- LLMWHISPERER_* environment variables are cleared for every test
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx
import pytest

from llmwhisperer_client.api.client import LLMWhispererClientV2

TEST_API_KEY = "test-key-0123456789"
TEST_BASE_URL = "https://whisper.test/api/v2"
TEST_HASH = "b4c25f17|5f1d285a7cf18d203de7af1a1abb0a3a"

SAMPLE_EXTRACTION: Dict[str, Any] = {
    "result_text": "CREDIT CARD STATEMENT\n\n    Payment Due Date    03/18/2024\n<<<\n",
    "confidence_metadata": [[{"confidence": 0.98, "text": "CREDIT"}]],
    "line_metadata": [[0, 105, 12, 1100]],
    "metadata": {"page_count": 1},
    "webhook_metadata": "",
}

SAMPLE_HIGHLIGHTS: Dict[str, Any] = {
    "1": {
        "base_y": 105,
        "base_y_percent": 9.55,
        "height": 12,
        "height_percent": 1.09,
        "page": 0,
        "page_height": 1100,
        "raw": [0, 105, 12, 1100],
    },
    "2": {
        "base_y": 140,
        "base_y_percent": 12.73,
        "height": 14,
        "height_percent": 1.27,
        "page": 0,
        "page_height": 1100,
        "raw": [0, 140, 14, 1100],
    },
}

SAMPLE_USAGE: Dict[str, Any] = {
    "current_page_count": 120,
    "daily_quota": 1000,
    "monthly_quota": 30000,
    "overage_page_count": 0,
    "subscription_plan": "Starter",
    "today_page_count": 12,
}

StatusStep = Union[str, int]


class FakeWhisperService:
    """In-process stand-in for the v2 service, used as a MockTransport handler."""

    def __init__(
        self,
        statuses: Sequence[StatusStep] = ("processed",),
        submit_status: int = 202,
        extraction: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.statuses: List[StatusStep] = list(statuses)
        self.submit_status = submit_status
        self.extraction = dict(extraction or SAMPLE_EXTRACTION)
        self.webhooks: Dict[str, Dict[str, str]] = {}
        self.requests: List[httpx.Request] = []
        self.status_calls = 0
        self.retrieve_calls = 0

    def requests_to(self, endpoint: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/" + endpoint)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("unstract-key") != TEST_API_KEY:
            return httpx.Response(401, json={"message": "Invalid API key"})

        endpoint = request.url.path.rsplit("/", 1)[-1]
        method = request.method
        if endpoint == "whisper" and method == "POST":
            return self._submit(request)
        if endpoint == "whisper-status":
            return self._status()
        if endpoint == "whisper-retrieve":
            self.retrieve_calls += 1
            return httpx.Response(200, json=self.extraction)
        if endpoint == "get-usage-info":
            return httpx.Response(200, json=SAMPLE_USAGE)
        if endpoint == "highlights":
            return httpx.Response(200, json=SAMPLE_HIGHLIGHTS)
        if endpoint == "whisper-manage-callback":
            return self._webhook(request)
        return httpx.Response(404, json={"message": "Not found"})

    def _submit(self, request: httpx.Request) -> httpx.Response:
        if self.submit_status == 200:
            return httpx.Response(200, json=dict(self.extraction, whisper_hash=TEST_HASH))
        if self.submit_status == 202:
            return httpx.Response(
                202,
                json={
                    "message": "Whisper Job Accepted",
                    "status": "processing",
                    "whisper_hash": TEST_HASH,
                },
            )
        return httpx.Response(self.submit_status, json={"message": "Submission rejected"})

    def _status(self) -> httpx.Response:
        step = self.statuses[min(self.status_calls, len(self.statuses) - 1)]
        self.status_calls += 1
        if isinstance(step, int):
            return httpx.Response(step, json={"message": "Whisper hash not found"})
        message = "Extraction failed" if step == "failed" else ""
        return httpx.Response(200, json={"status": step, "message": message})

    def _webhook(self, request: httpx.Request) -> httpx.Response:
        if request.method in ("POST", "PUT"):
            body = json.loads(request.content)
            name = body["webhook_name"]
            if request.method == "PUT" and name not in self.webhooks:
                return httpx.Response(404, json={"message": "Webhook not found"})
            self.webhooks[name] = body
            if request.method == "POST":
                return httpx.Response(201, json={"message": "Webhook registered successfully"})
            return httpx.Response(200, json={"message": "Webhook updated successfully"})

        name = request.url.params.get("webhook_name", "")
        if name not in self.webhooks:
            return httpx.Response(404, json={"message": "Webhook not found"})
        if request.method == "DELETE":
            del self.webhooks[name]
            return httpx.Response(200, json={"message": "Webhook deleted successfully"})
        return httpx.Response(200, json=self.webhooks[name])


class VirtualClock:
    """Clock and sleep pair for driving the poller without real waiting."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep a developer's .env or shell settings out of the tests."""
    for name in (
        "LLMWHISPERER_API_KEY",
        "LLMWHISPERER_BASE_URL",
        "LLMWHISPERER_BASE_URL_V2",
        "LLMWHISPERER_API_TIMEOUT",
        "LLMWHISPERER_LOGGING_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def service():
    return FakeWhisperService()


@pytest.fixture
def make_client():
    """Factory for a v2 client wired to a FakeWhisperService."""

    def _make(service: FakeWhisperService, **kwargs: Any) -> LLMWhispererClientV2:
        kwargs.setdefault("api_key", TEST_API_KEY)
        kwargs.setdefault("base_url", TEST_BASE_URL)
        kwargs.setdefault("poll_interval", 0)
        return LLMWhispererClientV2(transport=httpx.MockTransport(service), **kwargs)

    return _make


@pytest.fixture
def sample_pdf(tmp_path):
    """A small stand-in for credit_card.pdf."""
    path = tmp_path / "credit_card.pdf"
    path.write_bytes(b"%PDF-1.4\n" + b"0" * 2048 + b"\n%%EOF\n")
    return path

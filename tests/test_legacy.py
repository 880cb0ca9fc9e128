"""Tests for the legacy v1 client.

WHY: v1 differs from v2 on the wire (hash in a header, plain-text
results, hyphenated hash parameter, bounded server timeout). These tests
pin those differences down.

HOW: A small scripted handler stands in for the v1 service behind
httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
from typing import List

import httpx
import pytest

from llmwhisperer_client.api.legacy import LLMWhispererClient
from llmwhisperer_client.errors import RemoteError, ValidationError

from tests.conftest import TEST_API_KEY, TEST_HASH

LEGACY_BASE_URL = "https://whisper.test/v1"
EXTRACTED_TEXT = "RESTAURANT INVOICE\n\n  Total      42.00\n"


class LegacyService:
    def __init__(self, submit_status: int = 200, statuses=("processed",)):
        self.submit_status = submit_status
        self.statuses = list(statuses)
        self.status_calls = 0
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        if endpoint == "whisper":
            if self.submit_status == 200:
                return httpx.Response(200, text=EXTRACTED_TEXT, headers={"whisper-hash": TEST_HASH})
            return httpx.Response(
                202,
                json={"status": "processing", "message": "Whisper job accepted", "whisper-hash": TEST_HASH},
                headers={"whisper-hash": TEST_HASH},
            )
        if endpoint == "whisper-status":
            step = self.statuses[min(self.status_calls, len(self.statuses) - 1)]
            self.status_calls += 1
            return httpx.Response(200, json={"status": step})
        if endpoint == "whisper-retrieve":
            return httpx.Response(200, text=EXTRACTED_TEXT)
        if endpoint == "highlight-data":
            return httpx.Response(
                200,
                json={"1": {"base_y": 10, "base_y_percent": 1.0, "height": 8, "height_percent": 0.8, "page": 0}},
            )
        if endpoint == "get-usage-info":
            return httpx.Response(200, json={"subscription_plan": "Free", "daily_quota": 100})
        return httpx.Response(404, json={"message": "Not found"})


def _client(service: LegacyService) -> LLMWhispererClient:
    return LLMWhispererClient(
        api_key=TEST_API_KEY,
        base_url=LEGACY_BASE_URL,
        poll_interval=0,
        transport=httpx.MockTransport(service),
    )


class TestLegacyWhisper:

    def test_inline_text_with_header_hash(self, sample_pdf):
        service = LegacyService()

        async def _run():
            async with _client(service) as client:
                return await client.whisper(file_path=str(sample_pdf), processing_mode="text")

        result = asyncio.run(_run())
        assert result.status_code == 200
        assert result.whisper_hash == TEST_HASH
        assert result.extraction.result_text == EXTRACTED_TEXT
        params = service.requests[0].url.params
        assert params["processing_mode"] == "text"
        assert params["timeout"] == "200"

    def test_timeout_out_of_range_fails_before_network(self, sample_pdf):
        service = LegacyService()

        async def _run():
            async with _client(service) as client:
                await client.whisper(file_path=str(sample_pdf), timeout=201)

        with pytest.raises(ValidationError):
            asyncio.run(_run())
        assert service.requests == []

    def test_accepted_without_wait(self):
        service = LegacyService(submit_status=202)

        async def _run():
            async with _client(service) as client:
                return await client.whisper(url="https://example.com/bill.pdf", timeout=1)

        result = asyncio.run(_run())
        assert result.status_code == 202
        assert result.status == "processing"
        assert result.whisper_hash == TEST_HASH
        assert result.extraction.is_empty()

    def test_accepted_then_wait(self):
        service = LegacyService(submit_status=202, statuses=["processing", "processed"])

        async def _run():
            async with _client(service) as client:
                return await client.whisper(
                    url="https://example.com/bill.pdf", timeout=1, wait_for_completion=True
                )

        result = asyncio.run(_run())
        assert result.status_code == 200
        assert result.extraction.result_text == EXTRACTED_TEXT
        assert service.status_calls == 2
        status_request = [r for r in service.requests if r.url.path.endswith("whisper-status")][0]
        assert status_request.url.params["whisper-hash"] == TEST_HASH

    def test_error_label_fails_wait(self):
        service = LegacyService(submit_status=202, statuses=["error"])

        async def _run():
            async with _client(service) as client:
                return await client.whisper(
                    url="https://example.com/bill.pdf", timeout=1, wait_for_completion=True
                )

        result = asyncio.run(_run())
        assert result.status_code == -1
        assert result.extraction.is_empty()


class TestLegacyOtherCalls:

    def test_retrieve_text(self):
        service = LegacyService()

        async def _run():
            async with _client(service) as client:
                return await client.whisper_retrieve(TEST_HASH)

        result = asyncio.run(_run())
        assert result.extraction.result_text == EXTRACTED_TEXT
        assert result.whisper_hash == TEST_HASH

    def test_highlight_search_sends_plain_text(self):
        service = LegacyService()

        async def _run():
            async with _client(service) as client:
                return await client.highlight_data(TEST_HASH, "Total")

        result = asyncio.run(_run())
        assert result["status_code"] == 200
        assert result["1"]["page"] == 0
        request = service.requests[0]
        assert request.method == "POST"
        assert request.headers["content-type"] == "text/plain"
        assert request.content == b"Total"
        assert request.url.params["whisper-hash"] == TEST_HASH

    def test_usage_info(self):
        service = LegacyService()

        async def _run():
            async with _client(service) as client:
                return await client.get_usage_info()

        usage = asyncio.run(_run())
        assert usage.subscription_plan == "Free"
        assert usage.daily_quota == 100

    def test_remote_error(self):
        def handler(request):
            return httpx.Response(403, json={"message": "Quota exceeded", "quota": 0})

        async def _run():
            async with LLMWhispererClient(
                api_key=TEST_API_KEY, base_url=LEGACY_BASE_URL, transport=httpx.MockTransport(handler)
            ) as client:
                await client.get_usage_info()

        with pytest.raises(RemoteError) as exc_info:
            asyncio.run(_run())
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Quota exceeded"
        assert exc_info.value.details["quota"] == 0

    def test_default_base_url_is_v1(self):
        client = LLMWhispererClient(api_key=TEST_API_KEY)
        assert client.base_url == "https://llmwhisperer-api.unstract.com/v1"

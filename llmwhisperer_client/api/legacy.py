"""Async client for the legacy LLMWhisperer v1 API.

WHY: Existing integrations still talk to the single-endpoint v1 service,
which differs from v2 in small but breaking ways: the job handle comes back
in a response header, results are plain text, the server-side timeout is
bounded, and highlights are searched by free text.

HOW: LLMWhispererClient reuses BaseWhisperClient, the request builder, the
normalizer and the poller; only the wire details live here.

RULES:
- timeout must lie in 0..200; checked before any request
- 200 on submit = inline text result, handle in the "whisper-hash" header
- 202 = queued job; wait_for_completion polls with V1_STATUSES
- Handle query parameter is "whisper-hash" (hyphen), not "whisper_hash"
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx

from llmwhisperer_client.api.base import BaseWhisperClient
from llmwhisperer_client.api.models import (
    V1_STATUSES,
    Extraction,
    LegacyWhisperRequest,
    StatusVocabulary,
    UsageInfo,
    WhisperResult,
    WhisperStatus,
)
from llmwhisperer_client.api.normalize import AcceptedResponse, SyncResponse, normalize
from llmwhisperer_client.api.poller import CompletionPoller
from llmwhisperer_client.api.request import build_params, open_body
from llmwhisperer_client.config import DEFAULT_POLL_INTERVAL_S

logger = logging.getLogger(__name__)

HASH_HEADER = "whisper-hash"
HASH_PARAM = "whisper-hash"

_SUBMIT_OK = (200, 202)


class LLMWhispererClient(BaseWhisperClient):
    """Async client for the legacy (v1) LLMWhisperer API.

    RULES:
    - Use as: async with LLMWhispererClient() as client: ...
    - base_url defaults to LLMWHISPERER_BASE_URL, then BASE_URL
    """

    _LEGACY = True

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        api_timeout: float | None = None,
        logging_level: str | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        status_vocabulary: StatusVocabulary = V1_STATUSES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            api_key=api_key,
            api_timeout=api_timeout,
            logging_level=logging_level,
            poll_interval=poll_interval,
            transport=transport,
        )
        self.status_vocabulary = status_vocabulary
        self.poller = CompletionPoller(
            fetch_status=self.whisper_status,
            fetch_result=self._retrieve_extraction,
            vocabulary=status_vocabulary,
            interval_s=poll_interval,
        )

    async def get_usage_info(self) -> UsageInfo:
        logger.debug("get_usage_info called")
        resp = await self._send("GET", "/get-usage-info")
        self._raise_for_status(resp)
        return UsageInfo.from_dict(self._json(resp))

    async def whisper(
        self,
        request: LegacyWhisperRequest | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
        on_status: Callable[[str], None] | None = None,
        **options: Any,
    ) -> WhisperResult:
        """Submit a document to the v1 whisper endpoint.

        Args:
            request: Extraction options. Built from **options when None.
            cancel_event: Optional event that aborts a completion wait.
            on_status: Optional callback for status updates.
            **options: LegacyWhisperRequest fields.

        Returns:
            The normalized WhisperResult. Inline results carry the text in
            extraction.result_text.
        """
        logger.debug("whisper called")
        if request is None:
            request = LegacyWhisperRequest(**options)
        elif options:
            raise TypeError("Pass either a LegacyWhisperRequest or keyword options, not both")

        params = build_params(request)
        logger.debug("params: %s", params)

        with open_body(request) as body:
            resp = await self._send(
                "POST",
                "/whisper",
                params=params,
                content=body.content,
                headers=body.headers,
            )
        self._raise_for_status(resp, _SUBMIT_OK)

        if resp.status_code == 200:
            sync = SyncResponse.from_text(
                resp.text, resp.status_code, resp.headers.get(HASH_HEADER)
            )
            return normalize(sync)

        accepted = AcceptedResponse.from_json(self._json(resp), resp.status_code)
        if accepted.whisper_hash is None:
            accepted.whisper_hash = resp.headers.get(HASH_HEADER)
        if not request.wait_for_completion or not accepted.whisper_hash:
            return normalize(accepted)

        outcome = await self.poller.wait(
            accepted.whisper_hash,
            request.wait_timeout,
            cancel_event=cancel_event,
            on_status=on_status,
        )
        return normalize(accepted, outcome)

    async def whisper_status(self, whisper_hash: str) -> WhisperStatus:
        logger.debug("whisper_status called")
        resp = await self._send("GET", "/whisper-status", params={HASH_PARAM: whisper_hash})
        self._raise_for_status(resp)
        return WhisperStatus.from_dict(self._json(resp), resp.status_code, whisper_hash)

    async def whisper_retrieve(self, whisper_hash: str) -> WhisperResult:
        """Fetch the extracted text of a processed v1 job."""
        logger.debug("whisper_retrieve called")
        resp = await self._send("GET", "/whisper-retrieve", params={HASH_PARAM: whisper_hash})
        self._raise_for_status(resp)
        return normalize(SyncResponse.from_text(resp.text, resp.status_code, whisper_hash))

    async def _retrieve_extraction(self, whisper_hash: str) -> Extraction:
        result = await self.whisper_retrieve(whisper_hash)
        return result.extraction

    async def highlight_data(self, whisper_hash: str, search_text: str) -> dict[str, Any]:
        """Locate search_text in a processed job's source pages.

        The job must have been submitted with
        store_metadata_for_highlighting=True.

        Returns:
            The service's mapping with "status_code" added.
        """
        logger.debug("highlight_data called")
        resp = await self._send(
            "POST",
            "/highlight-data",
            params={HASH_PARAM: whisper_hash},
            content=search_text.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        self._raise_for_status(resp)
        result = self._json(resp)
        result.pop("statusCode", None)
        result["status_code"] = resp.status_code
        return result

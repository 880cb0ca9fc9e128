"""Async HTTP client for the LLMWhisperer v2 document-extraction API.

WHY: Applications need to submit documents, follow the job through the
service's asynchronous lifecycle, fetch the extracted text, and manage
webhooks and highlight metadata. This module hides the wire details
behind one client class so callers (CLI, tests, embedding apps) only deal
with typed requests and a single normalized result.

HOW: LLMWhispererClientV2 is an async context manager built on
BaseWhisperClient (httpx.AsyncClient underneath). whisper() validates the
request, streams the file or forwards the URL, then either returns the
accepted job as-is or drives CompletionPoller until the job is terminal.
Every result passes through normalize().

RULES:
- Always use the async context manager (async with LLMWhispererClientV2() as client:)
- 200 on submit = inline result, 202 = queued job, anything else = RemoteError
- Polling interval defaults to 5s and is a constructor argument
- A wait timeout is returned as status_code -1, never raised
- "delivered" / "unknown" during a wait raise RemoteError
- Status callback (on_status) is optional; when provided, called with status strings
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx

from llmwhisperer_client.api.base import BaseWhisperClient
from llmwhisperer_client.api.models import (
    V2_STATUSES,
    Extraction,
    HighlightLine,
    StatusVocabulary,
    UsageInfo,
    WebhookRegistration,
    WebhookResponse,
    WhisperRequest,
    WhisperResult,
    WhisperStatus,
)
from llmwhisperer_client.api.normalize import (
    AcceptedResponse,
    SyncResponse,
    normalize,
)
from llmwhisperer_client.api.poller import CompletionPoller
from llmwhisperer_client.api.request import build_params, open_body
from llmwhisperer_client.config import DEFAULT_POLL_INTERVAL_S, DEFAULT_WAIT_TIMEOUT_S

logger = logging.getLogger(__name__)

_SUBMIT_OK = (200, 202)
_WEBHOOK_OK = (200, 201, 204)


class LLMWhispererClientV2(BaseWhisperClient):
    """Async client for the current (v2) LLMWhisperer API.

    WHY: Provides a typed interface for the full extraction workflow:
    submit -> (wait) -> retrieve, plus usage, webhooks and highlights.

    HOW: Inherits auth, timeouts and error mapping from BaseWhisperClient.
    Builds one CompletionPoller per client around its own status and
    retrieve calls.

    RULES:
    - Use as: async with LLMWhispererClientV2() as client: ...
    - api_key defaults to LLMWHISPERER_API_KEY from the environment / .env
    - base_url defaults to LLMWHISPERER_BASE_URL_V2, then BASE_URL_V2
    - status_vocabulary defaults to V2_STATUSES
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        api_timeout: float | None = None,
        logging_level: str | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        status_vocabulary: StatusVocabulary = V2_STATUSES,
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

    # ------------------------------------------------------------------
    # Usage
    # ------------------------------------------------------------------

    async def get_usage_info(self) -> UsageInfo:
        """Return page counts and quotas for the configured API key."""
        logger.debug("get_usage_info called")
        resp = await self._send("GET", "/get-usage-info")
        self._raise_for_status(resp)
        return UsageInfo.from_dict(self._json(resp))

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def whisper(
        self,
        request: WhisperRequest | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
        on_status: Callable[[str], None] | None = None,
        **options: Any,
    ) -> WhisperResult:
        """Submit a document for extraction.

        WHY: This is the entry point of the job lifecycle. The service may
        finish small documents inline or queue the job; callers choose
        whether to wait here or poll later with whisper_status().

        HOW: Validates and maps the request (build_params), streams the file
        body if any (open_body, which closes the file on every exit path),
        and interprets the response code. With wait_for_completion a 202
        is followed by CompletionPoller.wait().

        RULES:
        - Pass either a WhisperRequest or its fields as keyword options
        - ValidationError is raised before any network request
        - The returned extraction is empty unless the job is processed

        Args:
            request: Extraction options. Built from **options when None.
            cancel_event: Optional event that aborts a completion wait.
            on_status: Optional callback for status updates.
            **options: WhisperRequest fields (file_path=..., url=..., ...).

        Returns:
            The normalized WhisperResult.
        """
        logger.debug("whisper called")
        if request is None:
            request = WhisperRequest(**options)
        elif options:
            raise TypeError("Pass either a WhisperRequest or keyword options, not both")

        params = build_params(request)
        logger.debug("params: %s", params)
        if on_status:
            on_status("Submitting {}...".format(request.file_path or request.url))

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
            return normalize(SyncResponse.from_json(self._json(resp), resp.status_code))

        accepted = AcceptedResponse.from_json(self._json(resp), resp.status_code)
        logger.debug("Accepted %s with status %s", accepted.whisper_hash, accepted.status)
        if not request.wait_for_completion or not accepted.whisper_hash:
            return normalize(accepted)

        outcome = await self.poller.wait(
            accepted.whisper_hash,
            request.wait_timeout,
            cancel_event=cancel_event,
            on_status=on_status,
        )
        return normalize(accepted, outcome)

    async def wait_for_completion(
        self,
        whisper_hash: str,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT_S,
        cancel_event: asyncio.Event | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> WhisperResult:
        """Block until an already-submitted job is terminal.

        Useful to resume waiting on a job whose earlier wait timed out.
        """
        accepted = AcceptedResponse(status_code=202, whisper_hash=whisper_hash)
        outcome = await self.poller.wait(
            whisper_hash, wait_timeout, cancel_event=cancel_event, on_status=on_status
        )
        return normalize(accepted, outcome)

    # ------------------------------------------------------------------
    # Status and retrieval
    # ------------------------------------------------------------------

    async def whisper_status(self, whisper_hash: str) -> WhisperStatus:
        """Return the current status of a job.

        Raises:
            RemoteError: the service answered with a non-200 status.
        """
        logger.debug("whisper_status called")
        resp = await self._send("GET", "/whisper-status", params={"whisper_hash": whisper_hash})
        self._raise_for_status(resp)
        return WhisperStatus.from_dict(self._json(resp), resp.status_code, whisper_hash)

    async def whisper_retrieve(self, whisper_hash: str) -> WhisperResult:
        """Fetch the extraction of a processed job.

        The service releases a result once; afterwards the job reports
        "delivered".
        """
        logger.debug("whisper_retrieve called")
        resp = await self._send("GET", "/whisper-retrieve", params={"whisper_hash": whisper_hash})
        self._raise_for_status(resp)
        sync = SyncResponse.from_json(self._json(resp), resp.status_code)
        if sync.whisper_hash is None:
            sync.whisper_hash = whisper_hash
        return normalize(sync)

    async def _retrieve_extraction(self, whisper_hash: str) -> Extraction:
        result = await self.whisper_retrieve(whisper_hash)
        return result.extraction

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def register_webhook(
        self, url: str, auth_token: str, webhook_name: str
    ) -> WebhookResponse:
        """Register a named callback URL for job-completion notifications."""
        logger.debug("register_webhook called for %s", webhook_name)
        resp = await self._send(
            "POST",
            "/whisper-manage-callback",
            json={"url": url, "auth_token": auth_token, "webhook_name": webhook_name},
        )
        self._raise_for_status(resp, _WEBHOOK_OK)
        return WebhookResponse(status_code=resp.status_code, message=_body_or_none(resp))

    async def get_webhook_details(self, webhook_name: str) -> WebhookRegistration:
        logger.debug("get_webhook_details called for %s", webhook_name)
        resp = await self._send(
            "GET", "/whisper-manage-callback", params={"webhook_name": webhook_name}
        )
        self._raise_for_status(resp)
        return WebhookRegistration.from_dict(self._json(resp), resp.status_code)

    async def update_webhook(
        self, url: str, auth_token: str, webhook_name: str
    ) -> WebhookResponse:
        logger.debug("update_webhook called for %s", webhook_name)
        resp = await self._send(
            "PUT",
            "/whisper-manage-callback",
            json={"url": url, "auth_token": auth_token, "webhook_name": webhook_name},
        )
        self._raise_for_status(resp, _WEBHOOK_OK)
        return WebhookResponse(status_code=resp.status_code, message=_body_or_none(resp))

    async def delete_webhook(self, webhook_name: str) -> WebhookResponse:
        logger.debug("delete_webhook called for %s", webhook_name)
        resp = await self._send(
            "DELETE", "/whisper-manage-callback", params={"webhook_name": webhook_name}
        )
        self._raise_for_status(resp, _WEBHOOK_OK)
        return WebhookResponse(status_code=resp.status_code, message=_body_or_none(resp))

    # ------------------------------------------------------------------
    # Highlights
    # ------------------------------------------------------------------

    async def get_highlight_data(
        self,
        whisper_hash: str,
        lines: str,
        extract_all_lines: bool = False,
    ) -> dict[str, HighlightLine]:
        """Return page positions for the given extracted line numbers.

        Args:
            whisper_hash: Handle of a processed job.
            lines: Range expression such as "1-5,7,21-", sent verbatim.
            extract_all_lines: Ask for every line regardless of lines.

        Returns:
            Mapping of line number (as a string) to its HighlightLine.
        """
        logger.debug("get_highlight_data called")
        resp = await self._send(
            "GET",
            "/highlights",
            params={
                "whisper_hash": whisper_hash,
                "lines": lines,
                "extract_all_lines": "true" if extract_all_lines else "false",
            },
        )
        self._raise_for_status(resp)
        return {
            line_no: HighlightLine.from_dict(data)
            for line_no, data in self._json(resp).items()
            if isinstance(data, dict)
        }


def _body_or_none(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text

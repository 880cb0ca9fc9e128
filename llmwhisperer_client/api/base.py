"""Shared httpx plumbing for both LLMWhisperer client versions.

WHY: Every endpoint call needs the same things: the API key header, the
per-request timeout, translation of httpx failures into TransportError,
and translation of non-success responses into RemoteError carrying the
remote message. Both client versions inherit this instead of repeating it.

HOW: BaseWhisperClient resolves ClientSettings once in __init__ and opens an
httpx.AsyncClient in __aenter__. _send() performs one request and maps
errors; _raise_for_status() decodes the remote error body.

RULES:
- Always use the async context manager (async with Client(...) as client:)
- The per-request timeout (api_timeout) applies to every single call and is
  independent of any wait-for-completion budget
- The API key is never logged
- transport= is for tests (httpx.MockTransport) and custom networking
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from llmwhisperer_client.config import (
    API_KEY_HEADER,
    DEFAULT_POLL_INTERVAL_S,
    ClientSettings,
    apply_logging_level,
)
from llmwhisperer_client.errors import RemoteError, TransportError

logger = logging.getLogger(__name__)


class BaseWhisperClient:
    """Authenticated async HTTP session against one API root.

    Subclasses set _LEGACY to pick their endpoint defaults.
    """

    _LEGACY = False

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        api_timeout: float | None = None,
        logging_level: str | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = ClientSettings.resolve(
            base_url=base_url,
            api_key=api_key,
            api_timeout=api_timeout,
            logging_level=logging_level,
            legacy=self._LEGACY,
        )
        if self.settings.logging_level_explicit:
            # process-wide: shared by every client in this process
            apply_logging_level(self.settings.logging_level)
            logger.debug("logging_level set to %s", self.settings.logging_level)
        logger.debug("base_url set to %s", self.base_url)

        self.poll_interval = poll_interval
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self.settings.base_url

    async def __aenter__(self):  # noqa: ANN204
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={API_KEY_HEADER: self.settings.api_key},
            timeout=httpx.Timeout(self.settings.api_timeout),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "{0} must be used as an async context manager: "
                "async with {0}() as client: ...".format(type(self).__name__)
            )
        return self._client

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Issue one request, mapping network failures to TransportError."""
        client = self._ensure_client()
        logger.debug("%s %s%s params=%s", method, self.base_url, path, kwargs.get("params"))
        try:
            return await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(str(e) or type(e).__name__) from e

    @staticmethod
    def _raise_for_status(resp: httpx.Response, accepted: tuple[int, ...] = (200,)) -> None:
        """Raise RemoteError unless resp.status_code is in accepted."""
        if resp.status_code in accepted:
            return
        details = _decode_error_body(resp)
        message = str(details.get("message") or resp.reason_phrase or "Request failed")
        raise RemoteError(message, resp.status_code, details)

    @staticmethod
    def _json(resp: httpx.Response) -> dict[str, Any]:
        """Decode a success body that the API documents as a JSON object."""
        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteError(
                "Malformed JSON response: {}".format(e), resp.status_code, {"body": resp.text}
            ) from e
        if not isinstance(data, dict):
            return {"data": data}
        return data


def _decode_error_body(resp: httpx.Response) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {"message": resp.text} if resp.text else {}
    if isinstance(data, dict):
        return data
    return {"message": str(data)}

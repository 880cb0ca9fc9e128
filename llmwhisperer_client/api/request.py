"""Request builder: validate extraction options and shape the outbound call.

WHY: The service takes every tuning option as a query parameter under its
own wire name (some of them misspelled on the server side), and the body is
either the raw document bytes or nothing at all. Keeping that mapping in one
place stops the two client versions from drifting apart.

HOW: build_params() validates a request and translates it through a fixed
wire-name table. open_body() is a context manager that opens a local file
read-only, hands back an async chunk iterator with octet-stream headers, and
closes the file on every exit path.

RULES:
- Exactly one of file_path / url must be non-empty, checked before any I/O
- v1 timeout must lie in 0..200 inclusive
- wait_timeout must not be negative
- Wire names are a fixed table, never derived from field names
- Booleans go out as "true" / "false"
"""

from __future__ import annotations

import contextlib
import logging
import os
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass, field
from typing import Any

from llmwhisperer_client.api.models import LegacyWhisperRequest, WhisperRequest
from llmwhisperer_client.errors import ValidationError

logger = logging.getLogger(__name__)

AnyWhisperRequest = WhisperRequest | LegacyWhisperRequest

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LEGACY_TIMEOUT_MIN_S = 0
LEGACY_TIMEOUT_MAX_S = 200

_CHUNK_SIZE = 64 * 1024

# Field name on the request dataclass -> query parameter understood by the
# service. "page_seperator" and "line_spitter_strategy" are the server's own
# spellings.
V2_WIRE_NAMES: dict[str, str] = {
    "url": "url",
    "mode": "mode",
    "output_mode": "output_mode",
    "page_separator": "page_seperator",
    "pages_to_extract": "pages_to_extract",
    "median_filter_size": "median_filter_size",
    "gaussian_blur_radius": "gaussian_blur_radius",
    "line_splitter_tolerance": "line_splitter_tolerance",
    "horizontal_stretch_factor": "horizontal_stretch_factor",
    "mark_vertical_lines": "mark_vertical_lines",
    "mark_horizontal_lines": "mark_horizontal_lines",
    "line_splitter_strategy": "line_spitter_strategy",
    "lang": "lang",
    "tag": "tag",
    "filename": "filename",
    "webhook_metadata": "webhook_metadata",
    "use_webhook": "use_webhook",
    "wait_for_completion": "wait_for_completion",
    "wait_timeout": "wait_timeout",
}

V1_WIRE_NAMES: dict[str, str] = {
    "url": "url",
    "processing_mode": "processing_mode",
    "output_mode": "output_mode",
    "page_separator": "page_seperator",
    "force_text_processing": "force_text_processing",
    "pages_to_extract": "pages_to_extract",
    "timeout": "timeout",
    "store_metadata_for_highlighting": "store_metadata_for_highlighting",
    "median_filter_size": "median_filter_size",
    "gaussian_blur_radius": "gaussian_blur_radius",
    "ocr_provider": "ocr_provider",
    "line_splitter_tolerance": "line_splitter_tolerance",
    "horizontal_stretch_factor": "horizontal_stretch_factor",
}


@dataclass
class RequestBody:
    """Outbound body for a submission.

    content is None for URL sources; the service fetches the URL itself.
    """

    content: AsyncIterator[bytes] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    size: int = 0


def validate_request(request: AnyWhisperRequest) -> None:
    """Check local preconditions of a submission.

    Raises:
        ValidationError: no source, two sources, or a timeout out of range.
    """
    if not request.file_path and not request.url:
        raise ValidationError("Either url or file_path must be provided")
    if request.file_path and request.url:
        raise ValidationError("Only one of url or file_path may be provided")

    if isinstance(request, LegacyWhisperRequest):
        if not LEGACY_TIMEOUT_MIN_S <= request.timeout <= LEGACY_TIMEOUT_MAX_S:
            raise ValidationError(
                "timeout must be between {} and {}".format(
                    LEGACY_TIMEOUT_MIN_S, LEGACY_TIMEOUT_MAX_S
                )
            )

    if request.wait_timeout < 0:
        raise ValidationError("wait_timeout must not be negative")


def build_params(request: AnyWhisperRequest) -> dict[str, Any]:
    """Validate a request and translate it to query parameters.

    Args:
        request: A v2 WhisperRequest or a v1 LegacyWhisperRequest.

    Returns:
        Query parameters keyed by wire name. Empty strings are kept, the
        service treats them as "not set".
    """
    validate_request(request)
    table = V1_WIRE_NAMES if isinstance(request, LegacyWhisperRequest) else V2_WIRE_NAMES
    params: dict[str, Any] = {}
    for attr, wire_name in table.items():
        params[wire_name] = _wire_value(getattr(request, attr))
    return params


def _wire_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


@contextlib.contextmanager
def open_body(request: AnyWhisperRequest) -> Iterator[RequestBody]:
    """Yield the submission body, releasing the local file on exit.

    For a file source the file is opened read-only and streamed in chunks
    with an explicit Content-Length, so httpx does not fall back to chunked
    transfer encoding. For a URL source an empty RequestBody is yielded.

    Raises:
        ValidationError: file_path does not point to a readable file.
    """
    if request.url:
        yield RequestBody()
        return

    path = request.file_path
    if not os.path.isfile(path):
        raise ValidationError("File not found: {}".format(path))

    size = os.path.getsize(path)
    logger.debug("Streaming %s (%d bytes)", path, size)
    with open(path, "rb") as f:
        yield RequestBody(
            content=_iter_chunks(f),
            headers={
                "Content-Type": "application/octet-stream",
                "Content-Length": str(size),
            },
            size=size,
        )


async def _iter_chunks(f) -> AsyncIterator[bytes]:  # noqa: ANN001
    while True:
        chunk = f.read(_CHUNK_SIZE)
        if not chunk:
            break
        yield chunk

"""Result normalizer: fold raw response shapes into one WhisperResult.

WHY: A submission can end three ways (inline 200, accepted 202, or accepted
followed by a completion wait), and the service has used two names for the
same status-code field ("status_code" and "statusCode"). Callers should see
one schema no matter which path produced it.

HOW: Each raw shape is a small dataclass built straight from the HTTP
response. normalize() dispatches on the shape and, when a PollOutcome is
given, lets the outcome override the bookkeeping fields of the accepted
response.

RULES:
- "status_code" is the canonical name; if both names appear it wins and
  "statusCode" is dropped
- The extraction of a non-processed result is always empty
- normalize() never mutates its inputs
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from llmwhisperer_client.api.models import Extraction, WhisperResult

CANONICAL_STATUS_KEY = "status_code"
QUICK_STATUS_KEY = "statusCode"

MESSAGE_COMPLETED = "Whisper operation completed"
MESSAGE_FAILED = "Whisper client operation failed"
MESSAGE_TIMED_OUT = "Whisper client operation timed out"


def pop_status_code(body: dict[str, Any], default: int) -> int:
    """Remove both status-code keys from body and return the winning value.

    The canonical key wins over the quick key; default is used when the
    body carries neither.
    """
    quick = body.pop(QUICK_STATUS_KEY, None)
    canonical = body.pop(CANONICAL_STATUS_KEY, None)
    if canonical is not None:
        return int(canonical)
    if quick is not None:
        return int(quick)
    return default


@dataclass
class SyncResponse:
    """A 200 submission: the service did the work inline."""

    status_code: int
    whisper_hash: str | None
    extraction: Extraction

    @classmethod
    def from_json(cls, body: dict[str, Any], status_code: int) -> SyncResponse:
        data = dict(body)
        pop_status_code(data, status_code)
        whisper_hash = data.pop("whisper_hash", None)
        data.pop("status", None)
        data.pop("message", None)
        payload = data.pop("extraction", None)
        if isinstance(payload, dict):
            data = payload
        return cls(
            status_code=status_code,
            whisper_hash=whisper_hash,
            extraction=Extraction.from_dict(data),
        )

    @classmethod
    def from_text(cls, text: str, status_code: int, whisper_hash: str | None) -> SyncResponse:
        return cls(
            status_code=status_code,
            whisper_hash=whisper_hash,
            extraction=Extraction(result_text=text),
        )


@dataclass
class AcceptedResponse:
    """A 202 submission: the job is queued and must be polled."""

    status_code: int
    whisper_hash: str | None
    status: str = "processing"
    message: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, body: dict[str, Any], status_code: int) -> AcceptedResponse:
        data = dict(body)
        code = pop_status_code(data, status_code)
        whisper_hash = data.pop("whisper_hash", None) or data.pop("whisper-hash", None)
        return cls(
            status_code=code,
            whisper_hash=whisper_hash,
            status=str(data.pop("status", "processing") or "processing"),
            message=str(data.pop("message", "") or ""),
            extra=data,
        )


@dataclass
class PollOutcome:
    """How a completion wait ended (when it did not raise)."""

    status_code: int
    message: str
    status: str = ""
    extraction: Extraction = field(default_factory=Extraction)

    @classmethod
    def completed(cls, extraction: Extraction) -> PollOutcome:
        return cls(200, MESSAGE_COMPLETED, "processed", extraction)

    @classmethod
    def failed(cls, status_code: int, status: str = "", message: str = "") -> PollOutcome:
        return cls(status_code, message or MESSAGE_FAILED, status)

    @classmethod
    def timed_out(cls, status: str = "") -> PollOutcome:
        return cls(-1, MESSAGE_TIMED_OUT, status)


RawResponse = SyncResponse | AcceptedResponse


def normalize(response: RawResponse, outcome: PollOutcome | None = None) -> WhisperResult:
    """Build the caller-facing result from a raw submission response.

    Args:
        response: The parsed submission response.
        outcome: The completion wait's outcome, when the caller waited.

    Returns:
        A fresh WhisperResult with exactly one status code.
    """
    if isinstance(response, SyncResponse):
        return WhisperResult(
            status_code=response.status_code,
            message=MESSAGE_COMPLETED,
            status="processed",
            whisper_hash=response.whisper_hash,
            extraction=response.extraction,
        )

    if outcome is None:
        return WhisperResult(
            status_code=response.status_code,
            message=response.message,
            status=response.status,
            whisper_hash=response.whisper_hash,
        )

    return WhisperResult(
        status_code=outcome.status_code,
        message=outcome.message,
        status=outcome.status or response.status,
        whisper_hash=response.whisper_hash,
        extraction=outcome.extraction if outcome.status_code == 200 else Extraction(),
    )

"""LLMWhisperer request and response dataclasses.

WHY: The service returns loosely-shaped JSON that differs between API
versions. Typed dataclasses make the shapes explicit, give callers IDE
completion, and keep field-name mismatches from leaking into user code.

HOW: Request dataclasses carry the extraction options under Python names;
request.py maps them to wire names. Response dataclasses have from_dict
factories that tolerate absent optional fields. StatusVocabulary describes
which job-status labels are pending, successful, failed, or unusable for a
given API version.

RULES:
- Exactly one of file_path / url is set on a request (checked in request.py)
- Extraction() is the empty payload used until a job is processed
- WhisperResult.to_dict() emits a single status-code key: "status_code"
- Unknown remote fields are preserved in `extra` rather than dropped
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from llmwhisperer_client.config import DEFAULT_WAIT_TIMEOUT_S

# ---------------------------------------------------------------------------
# Status vocabularies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatusVocabulary:
    """Job-status labels for one API version, grouped by meaning.

    WHY: v1 reports "processing/processed/error" while v2 adds "accepted",
    "failed", "delivered" and "unknown". The poller must not hardcode either
    list.

    RULES:
    - pending: poll again after the interval
    - success: retrieve the result
    - failure: stop with a failure result
    - abort: stop by raising; the result can no longer be retrieved
    """

    pending: frozenset[str]
    success: frozenset[str]
    failure: frozenset[str]
    abort: frozenset[str] = frozenset()

    def is_terminal(self, status: str) -> bool:
        return status in self.success or status in self.failure or status in self.abort


V1_STATUSES = StatusVocabulary(
    pending=frozenset({"processing"}),
    success=frozenset({"processed"}),
    failure=frozenset({"error"}),
)

V2_STATUSES = StatusVocabulary(
    pending=frozenset({"accepted", "processing"}),
    success=frozenset({"processed"}),
    failure=frozenset({"failed", "error"}),
    abort=frozenset({"delivered", "unknown"}),
)

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@dataclass
class WhisperRequest:
    """Extraction options for a v2 submission.

    Field defaults match the service defaults, so an untouched request
    behaves like a bare API call. output_mode defaults to "line-printer";
    v2 also accepts "layout_preserving" and "text".
    """

    file_path: str = ""
    url: str = ""
    mode: str = "high_quality"
    output_mode: str = "line-printer"
    page_separator: str = "<<<"
    pages_to_extract: str = ""
    median_filter_size: int = 0
    gaussian_blur_radius: int = 0
    line_splitter_tolerance: float = 0.4
    horizontal_stretch_factor: float = 1.0
    mark_vertical_lines: bool = False
    mark_horizontal_lines: bool = False
    line_splitter_strategy: str = "left-priority"
    lang: str = "eng"
    tag: str = "default"
    filename: str = ""
    webhook_metadata: str = ""
    use_webhook: str = ""
    wait_for_completion: bool = False
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT_S


@dataclass
class LegacyWhisperRequest:
    """Extraction options for a v1 submission.

    timeout is the server-side synchronous budget (0..200 s); past it the
    service answers 202 and the job continues asynchronously.
    """

    file_path: str = ""
    url: str = ""
    processing_mode: str = "ocr"
    output_mode: str = "line-printer"
    page_separator: str = "<<<"
    force_text_processing: bool = False
    pages_to_extract: str = ""
    timeout: int = 200
    store_metadata_for_highlighting: bool = False
    median_filter_size: int = 0
    gaussian_blur_radius: int = 0
    ocr_provider: str = "advanced"
    line_splitter_tolerance: float = 0.4
    horizontal_stretch_factor: float = 1.0
    wait_for_completion: bool = False
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT_S


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


@dataclass
class Extraction:
    """Extracted content of a processed job.

    RULES:
    - result_text is the layout-preserved text
    - line_metadata / confidence_metadata are per-line lists from the service
    - webhook_metadata echoes the metadata sent with the submission
    """

    result_text: str = ""
    confidence_metadata: list[Any] = field(default_factory=list)
    line_metadata: list[Any] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    webhook_metadata: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    _FIELDS = ("result_text", "confidence_metadata", "line_metadata", "metadata", "webhook_metadata")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Extraction:
        extra = {k: v for k, v in data.items() if k not in cls._FIELDS}
        return cls(
            result_text=data.get("result_text") or "",
            confidence_metadata=data.get("confidence_metadata") or [],
            line_metadata=data.get("line_metadata") or [],
            metadata=data.get("metadata") or {},
            webhook_metadata=data.get("webhook_metadata") or "",
            extra=extra,
        )

    def is_empty(self) -> bool:
        return self == Extraction()

    def to_dict(self) -> dict[str, Any]:
        if self.is_empty():
            return {}
        data = asdict(self)
        extra = data.pop("extra")
        data.update(extra)
        return data


@dataclass
class WhisperResult:
    """Normalized outcome of a submission, retrieval, or completed wait.

    WHY: The sync path, the async accepted path, and the polling path all
    produced differently-shaped payloads. Callers get this one schema.

    RULES:
    - status_code: HTTP status of the deciding call, 200 on processed,
      -1 on failure or timeout
    - whisper_hash: None only when the service did not report one
    - extraction: empty until the job is processed
    """

    status_code: int
    message: str = ""
    status: str = ""
    whisper_hash: str | None = None
    extraction: Extraction = field(default_factory=Extraction)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status_code": self.status_code,
            "status": self.status,
            "message": self.message,
            "whisper_hash": self.whisper_hash,
            "extraction": self.extraction.to_dict(),
        }


@dataclass
class WhisperStatus:
    """Response of the whisper-status endpoint."""

    status_code: int
    status: str
    message: str = ""
    whisper_hash: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], status_code: int, whisper_hash: str | None = None) -> WhisperStatus:
        return cls(
            status_code=status_code,
            status=str(data.get("status", "")),
            message=str(data.get("message", "") or ""),
            whisper_hash=data.get("whisper_hash") or whisper_hash,
        )


@dataclass
class UsageInfo:
    """Quota and consumption figures for the API key."""

    current_page_count: int = 0
    daily_quota: int = 0
    monthly_quota: int = 0
    overage_page_count: int = 0
    subscription_plan: str = ""
    today_page_count: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    _FIELDS = (
        "current_page_count",
        "daily_quota",
        "monthly_quota",
        "overage_page_count",
        "subscription_plan",
        "today_page_count",
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UsageInfo:
        known = {k: data[k] for k in cls._FIELDS if k in data}
        extra = {k: v for k, v in data.items() if k not in cls._FIELDS}
        return cls(extra=extra, **known)


@dataclass
class WebhookRegistration:
    """A named callback registered with the service.

    The service is the source of truth; nothing is stored locally.
    """

    webhook_name: str
    url: str
    auth_token: str = ""
    status_code: int = 200

    @classmethod
    def from_dict(cls, data: dict[str, Any], status_code: int) -> WebhookRegistration:
        return cls(
            webhook_name=data.get("webhook_name", ""),
            url=data.get("url", ""),
            auth_token=data.get("auth_token", "") or "",
            status_code=status_code,
        )


@dataclass
class WebhookResponse:
    """Pass-through of a webhook create/update/delete response."""

    status_code: int
    message: Any = None


@dataclass
class HighlightLine:
    """Position of one extracted line on its source page.

    RULES:
    - page is zero-based
    - base_y / height are absolute units of the rendered page
    - *_percent values are relative to page_height
    - raw is the service's bounding data, passed through untouched
    """

    page: int
    base_y: float
    base_y_percent: float
    height: float
    height_percent: float
    page_height: float = 0.0
    raw: list[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HighlightLine:
        return cls(
            page=int(data.get("page", 0)),
            base_y=float(data.get("base_y", 0.0)),
            base_y_percent=float(data.get("base_y_percent", 0.0)),
            height=float(data.get("height", 0.0)),
            height_percent=float(data.get("height_percent", 0.0)),
            page_height=float(data.get("page_height", 0.0)),
            raw=list(data.get("raw") or []),
        )

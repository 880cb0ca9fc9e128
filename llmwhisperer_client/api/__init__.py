"""LLMWhisperer API client package: async HTTP interface to the extraction service.

WHY: Applications need to submit documents, wait for or poll extraction
jobs, and fetch results, webhooks and highlights. This package keeps all
service communication behind two client classes, one per API version.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. Requests and responses
are typed dataclasses defined in models.py; every submission result is
normalized into a WhisperResult.

RULES:
- All HTTP calls go through a client class (no direct httpx usage elsewhere)
- Authentication is via the "unstract-key" header from config
"""

from llmwhisperer_client.api.client import LLMWhispererClientV2
from llmwhisperer_client.api.legacy import LLMWhispererClient
from llmwhisperer_client.api.models import (
    V1_STATUSES,
    V2_STATUSES,
    Extraction,
    HighlightLine,
    LegacyWhisperRequest,
    StatusVocabulary,
    UsageInfo,
    WebhookRegistration,
    WebhookResponse,
    WhisperRequest,
    WhisperResult,
    WhisperStatus,
)

__all__ = [
    "LLMWhispererClient",
    "LLMWhispererClientV2",
    "Extraction",
    "HighlightLine",
    "LegacyWhisperRequest",
    "StatusVocabulary",
    "UsageInfo",
    "V1_STATUSES",
    "V2_STATUSES",
    "WebhookRegistration",
    "WebhookResponse",
    "WhisperRequest",
    "WhisperResult",
    "WhisperStatus",
]

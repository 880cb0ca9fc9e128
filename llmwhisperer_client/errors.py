"""Exception taxonomy for the LLMWhisperer client.

WHY: Callers need to tell apart a bad local request, a rejection from the
service, and a network failure. Every error carries a status code so one
except clause can still report something useful.

HOW: One base class with status_code/message, and a subclass per failure
origin. Transport failures have no HTTP status and use -1.

RULES:
- ValidationError is raised before any network request
- RemoteError.status_code is the real HTTP status (or -1 for an abort)
- TransportError.status_code is always -1
"""

from __future__ import annotations

from typing import Any

NO_STATUS = -1
"""Sentinel status code when no HTTP status exists."""


class WhisperClientError(Exception):
    """Base class for every error raised by this package."""

    def __init__(
        self,
        message: str,
        status_code: int = NO_STATUS,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return "LLMWhisperer error {}: {}".format(self.status_code, self.message)


class ValidationError(WhisperClientError, ValueError):
    """A local precondition failed (missing source, out-of-range timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, NO_STATUS)


class RemoteError(WhisperClientError):
    """The service answered with a non-success status.

    details holds the decoded remote body so extra fields are not lost.
    """


class TransportError(WhisperClientError):
    """The request never produced an HTTP response (DNS, reset, timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, NO_STATUS)


class WaitCancelledError(WhisperClientError):
    """The caller's cancel event fired while waiting for job completion."""

    def __init__(self, whisper_hash: str) -> None:
        self.whisper_hash = whisper_hash
        super().__init__(
            "Wait for {} cancelled by caller".format(whisper_hash), NO_STATUS
        )

"""Completion poller: wait for an accepted job to reach a terminal state.

WHY: A 202 submission only queues the job. When the caller asks to wait,
the client must check the job status on a fixed interval until it is
processed, fails, becomes unusable, or the caller's wait budget runs out.

HOW: CompletionPoller is handed two coroutine functions (status fetch and
result fetch) plus a StatusVocabulary, so the same loop serves both API
versions. The clock and sleep callables are injectable, which lets tests
drive the loop with virtual time. An optional asyncio.Event is raced
against every request and every sleep.

RULES:
- The wait budget is wall-clock time measured from loop entry
- The budget is checked before each status call, never during one
- pending labels (and labels the vocabulary does not know) poll again
- A RemoteError from the status call ends the wait as a failure
- abort labels raise RemoteError(-1); a delivered job cannot be retrieved
- Timeouts and failures are returned, not raised
- asyncio task cancellation propagates unchanged
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from llmwhisperer_client.api.models import Extraction, StatusVocabulary, WhisperStatus
from llmwhisperer_client.api.normalize import PollOutcome
from llmwhisperer_client.config import DEFAULT_POLL_INTERVAL_S
from llmwhisperer_client.errors import NO_STATUS, RemoteError, WaitCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")

StatusFetcher = Callable[[str], Awaitable[WhisperStatus]]
ResultFetcher = Callable[[str], Awaitable[Extraction]]


class CompletionPoller:
    """Fixed-interval status loop for one API version.

    Args:
        fetch_status: Coroutine function returning the job's WhisperStatus.
        fetch_result: Coroutine function returning the job's Extraction.
        vocabulary: Status labels of the API version being polled.
        interval_s: Pause between status checks.
        clock: Monotonic clock in seconds.
        sleep: Coroutine function used to pause.
    """

    def __init__(
        self,
        fetch_status: StatusFetcher,
        fetch_result: ResultFetcher,
        vocabulary: StatusVocabulary,
        interval_s: float = DEFAULT_POLL_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval_s < 0:
            raise ValueError("interval_s must not be negative")
        self._fetch_status = fetch_status
        self._fetch_result = fetch_result
        self._vocabulary = vocabulary
        self._interval_s = interval_s
        self._clock = clock
        self._sleep = sleep

    async def wait(
        self,
        whisper_hash: str,
        timeout_s: float,
        cancel_event: asyncio.Event | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> PollOutcome:
        """Poll until the job is terminal or timeout_s has elapsed.

        Args:
            whisper_hash: Handle of the accepted job.
            timeout_s: Wait budget in seconds.
            cancel_event: Optional event; setting it stops the wait.
            on_status: Optional callback for human-readable progress.

        Returns:
            PollOutcome describing success, failure, or timeout.

        Raises:
            RemoteError: The job reported an abort label.
            WaitCancelledError: cancel_event was set.
        """
        vocab = self._vocabulary
        start_time = self._clock()
        last_status = ""

        while True:
            elapsed = self._clock() - start_time
            if elapsed > timeout_s:
                logger.debug("Wait for %s timed out after %.1fs", whisper_hash, elapsed)
                if on_status:
                    on_status("Timed out after {:.0f}s".format(elapsed))
                return PollOutcome.timed_out(last_status)

            try:
                status = await self._guarded(
                    self._fetch_status(whisper_hash), whisper_hash, cancel_event
                )
            except RemoteError as e:
                logger.debug("Status check for %s failed: %s", whisper_hash, e)
                return PollOutcome.failed(e.status_code, last_status)

            last_status = status.status
            logger.debug("Status: %s", status.status)
            if on_status:
                on_status("Status: {} (elapsed: {:.0f}s)".format(status.status, elapsed))

            if vocab.is_terminal(status.status):
                return await self._settle(status, whisper_hash, cancel_event)

            if status.status not in vocab.pending:
                logger.warning(
                    "Unrecognized status %r for %s, polling again", status.status, whisper_hash
                )

            logger.debug("Sleeping for %s seconds", self._interval_s)
            await self._guarded(self._sleep(self._interval_s), whisper_hash, cancel_event)

    async def _settle(
        self,
        status: WhisperStatus,
        whisper_hash: str,
        cancel_event: asyncio.Event | None,
    ) -> PollOutcome:
        """Turn a terminal status into an outcome, fetching the result on success."""
        vocab = self._vocabulary
        if status.status in vocab.success:
            extraction = await self._guarded(
                self._fetch_result(whisper_hash), whisper_hash, cancel_event
            )
            return PollOutcome.completed(extraction)

        if status.status in vocab.failure:
            return PollOutcome.failed(NO_STATUS, status.status, status.message)

        raise RemoteError(
            "Whisper operation {}: {}".format(
                "already delivered" if status.status == "delivered" else "status unknown",
                whisper_hash,
            ),
            NO_STATUS,
            {"status": status.status, "message": status.message},
        )

    async def _guarded(
        self,
        awaitable: Awaitable[T],
        whisper_hash: str,
        cancel_event: asyncio.Event | None,
    ) -> T:
        """Await awaitable, abandoning it if cancel_event fires first."""
        if cancel_event is None:
            return await awaitable
        if cancel_event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise WaitCancelledError(whisper_hash)

        work = asyncio.ensure_future(awaitable)
        cancelled = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({work, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (work, cancelled):
                if not task.done():
                    task.cancel()
        if work.done() and not work.cancelled():
            return work.result()
        raise WaitCancelledError(whisper_hash)

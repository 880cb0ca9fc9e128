"""Tests for the result normalizer.

WHY: Callers rely on a single status-code field and an empty extraction
for unfinished jobs, whichever path produced the result.
"""

from __future__ import annotations

from llmwhisperer_client.api.models import Extraction, WhisperResult
from llmwhisperer_client.api.normalize import (
    MESSAGE_COMPLETED,
    MESSAGE_TIMED_OUT,
    AcceptedResponse,
    PollOutcome,
    RawResponse,
    SyncResponse,
    normalize,
    pop_status_code,
)

from tests.conftest import SAMPLE_EXTRACTION, TEST_HASH


class TestPopStatusCode:

    def test_canonical_wins_and_quick_removed(self):
        body = {"status_code": 200, "statusCode": 202, "message": "x"}
        assert pop_status_code(body, 0) == 200
        assert body == {"message": "x"}

    def test_quick_only_is_moved(self):
        body = {"statusCode": 202}
        assert pop_status_code(body, 0) == 202
        assert body == {}

    def test_default_when_absent(self):
        assert pop_status_code({}, 418) == 418


class TestNormalize:

    def test_accepted_without_wait(self):
        accepted = AcceptedResponse.from_json(
            {"status": "processing", "message": "Whisper Job Accepted", "whisper_hash": TEST_HASH},
            202,
        )
        result = normalize(accepted)
        assert result.status_code == 202
        assert result.status == "processing"
        assert result.whisper_hash == TEST_HASH
        assert result.extraction.is_empty()

    def test_accepted_body_with_both_code_names(self):
        accepted = AcceptedResponse.from_json(
            {"statusCode": 999, "status_code": 202, "whisper_hash": TEST_HASH}, 202
        )
        assert accepted.status_code == 202
        assert "statusCode" not in accepted.extra
        assert "status_code" not in accepted.extra

    def test_completed_outcome(self):
        accepted = AcceptedResponse(202, TEST_HASH)
        extraction = Extraction.from_dict(SAMPLE_EXTRACTION)
        result = normalize(accepted, PollOutcome.completed(extraction))
        assert result.status_code == 200
        assert result.status == "processed"
        assert result.message == MESSAGE_COMPLETED
        assert result.extraction == extraction

    def test_timeout_outcome(self):
        result = normalize(AcceptedResponse(202, TEST_HASH), PollOutcome.timed_out("processing"))
        assert result.status_code == -1
        assert result.message == MESSAGE_TIMED_OUT
        assert result.status == "processing"
        assert result.extraction.is_empty()

    def test_failed_outcome_never_carries_extraction(self):
        outcome = PollOutcome(-1, "boom", "failed", Extraction(result_text="partial"))
        result = normalize(AcceptedResponse(202, TEST_HASH), outcome)
        assert result.extraction.is_empty()

    def test_sync_json_response(self):
        sync = SyncResponse.from_json(dict(SAMPLE_EXTRACTION, whisper_hash=TEST_HASH), 200)
        result = normalize(sync)
        assert result.status_code == 200
        assert result.whisper_hash == TEST_HASH
        assert result.extraction.result_text == SAMPLE_EXTRACTION["result_text"]

    def test_sync_json_nested_extraction(self):
        sync = SyncResponse.from_json(
            {"whisper_hash": TEST_HASH, "status_code": 200, "extraction": SAMPLE_EXTRACTION}, 200
        )
        assert sync.extraction == Extraction.from_dict(SAMPLE_EXTRACTION)

    def test_sync_text_response(self):
        result = normalize(SyncResponse.from_text("hello", 200, TEST_HASH))
        assert result.extraction.result_text == "hello"
        assert result.whisper_hash == TEST_HASH


class TestResultSchema:

    def test_to_dict_has_single_status_code(self):
        data = WhisperResult(status_code=202, status="processing").to_dict()
        assert "status_code" in data
        assert "statusCode" not in data

    def test_empty_extraction_serializes_to_empty_dict(self):
        assert WhisperResult(status_code=202).to_dict()["extraction"] == {}

    def test_extra_extraction_fields_flattened(self):
        extraction = Extraction.from_dict(dict(SAMPLE_EXTRACTION, highlight_version=2))
        data = extraction.to_dict()
        assert data["highlight_version"] == 2
        assert "extra" not in data


class TestRawResponseAlias:

    def test_covers_both_submission_shapes(self):
        assert isinstance(SyncResponse.from_text("hello", 200, TEST_HASH), RawResponse)
        assert isinstance(AcceptedResponse(202, TEST_HASH), RawResponse)
        assert not isinstance(PollOutcome.timed_out(), RawResponse)

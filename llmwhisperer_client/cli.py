"""Command-line interface for the LLMWhisperer client.

WHY: Users need a quick way to extract text from a document, check on a
job, or manage webhooks from the terminal without writing Python. The CLI
wires the v2 client behind a handful of subcommands.

HOW: Uses argparse subparsers, one per operation. Each command runs one
coroutine via asyncio.run(). Status messages go to stderr; results are
printed to stdout as JSON (or the extracted text with --text), or saved
with --output.

RULES:
- Credentials come from --api-key or LLMWHISPERER_API_KEY (.env supported)
- whisper requires exactly one of --file / --url
- Status output goes to stderr (not stdout)
- Exit code 0 on success, 1 on any client error, 130 when interrupted
- A whisper result other than 200 (done) or 202 (queued) is a failed wait:
  the result is still printed and the exit code is 1
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

from llmwhisperer_client.api.client import LLMWhispererClientV2
from llmwhisperer_client.api.models import WhisperRequest, WhisperResult
from llmwhisperer_client.config import DEFAULT_WAIT_TIMEOUT_S
from llmwhisperer_client.errors import WhisperClientError

# inline result or job queued without waiting
_OK_STATUS_CODES = (200, 202)


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, WhisperResult):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    return value


def _emit(value: Any, output: str | None = None) -> None:
    """Write a command's result as JSON to stdout or to the output file."""
    text = json.dumps(_to_jsonable(value), indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        _status("Saved: {}".format(output))
    else:
        print(text)


def _write_text(text: str, output: str | None = None) -> None:
    """Write extracted text to stdout or to the output file."""
    if output:
        Path(output).write_text(text, encoding="utf-8")
        _status("Saved: {}".format(output))
    else:
        print(text)


def _make_client(args: argparse.Namespace) -> LLMWhispererClientV2:
    return LLMWhispererClientV2(
        base_url=args.base_url,
        api_key=args.api_key,
        api_timeout=args.api_timeout,
        logging_level=args.log_level,
        poll_interval=args.poll_interval,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _cmd_whisper(args: argparse.Namespace) -> int:
    request = WhisperRequest(
        file_path=args.file or "",
        url=args.url or "",
        mode=args.mode,
        output_mode=args.output_mode,
        pages_to_extract=args.pages,
        lang=args.lang,
        tag=args.tag,
        use_webhook=args.use_webhook,
        webhook_metadata=args.webhook_metadata,
        wait_for_completion=args.wait,
        wait_timeout=args.wait_timeout,
    )
    async with _make_client(args) as client:
        result = await client.whisper(request, on_status=_status)

    failed = result.status_code not in _OK_STATUS_CODES
    if failed:
        _status("Error: {}".format(result.message or "status {}".format(result.status_code)))
    elif not result.extraction.is_empty():
        _status("Done! {} characters extracted.".format(len(result.extraction.result_text)))
    else:
        _status("Job {} is {}.".format(result.whisper_hash, result.status))

    if args.text and not result.extraction.is_empty():
        _write_text(result.extraction.result_text, args.output)
    else:
        _emit(result, args.output)
    return 1 if failed else 0


async def _cmd_status(args: argparse.Namespace) -> int:
    async with _make_client(args) as client:
        _emit(await client.whisper_status(args.whisper_hash))
    return 0


async def _cmd_retrieve(args: argparse.Namespace) -> int:
    async with _make_client(args) as client:
        result = await client.whisper_retrieve(args.whisper_hash)
    if args.text:
        _write_text(result.extraction.result_text, args.output)
    else:
        _emit(result, args.output)
    return 0


async def _cmd_usage(args: argparse.Namespace) -> int:
    async with _make_client(args) as client:
        _emit(await client.get_usage_info())
    return 0


async def _cmd_highlights(args: argparse.Namespace) -> int:
    async with _make_client(args) as client:
        _emit(
            await client.get_highlight_data(
                args.whisper_hash, args.lines, extract_all_lines=args.all_lines
            )
        )
    return 0


async def _cmd_webhook(args: argparse.Namespace) -> int:
    async with _make_client(args) as client:
        if args.action == "register":
            result = await client.register_webhook(args.url, args.auth_token, args.name)
        elif args.action == "update":
            result = await client.update_webhook(args.url, args.auth_token, args.name)
        elif args.action == "delete":
            result = await client.delete_webhook(args.name)
        else:
            result = await client.get_webhook_details(args.name)
    _emit(result)
    return 0


_COMMANDS = {
    "whisper": _cmd_whisper,
    "status": _cmd_status,
    "retrieve": _cmd_retrieve,
    "usage": _cmd_usage,
    "highlights": _cmd_highlights,
    "webhook": _cmd_webhook,
}


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without touching the network.
    """
    parser = argparse.ArgumentParser(
        prog="llmwhisperer_client",
        description="Extract layout-preserving text from documents with LLMWhisperer.",
    )
    parser.add_argument("--api-key", default=None, help="API key (default: $LLMWHISPERER_API_KEY).")
    parser.add_argument("--base-url", default=None, help="API root (default: v2 endpoint).")
    parser.add_argument(
        "--api-timeout", type=float, default=None, help="Per-request timeout in seconds."
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=5.0,
        help="Seconds between status checks while waiting (default: %(default)s).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level, e.g. DEBUG (default: $LLMWHISPERER_LOGGING_LEVEL or INFO).",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("whisper", help="Submit a document for extraction.")
    source = p.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", default=None, help="Local document to upload.")
    source.add_argument("--url", default=None, help="Remote document URL for the service to fetch.")
    p.add_argument("--mode", default="high_quality", help="Processing mode (default: %(default)s).")
    p.add_argument(
        "--output-mode", default="line-printer", help="Output mode (default: %(default)s)."
    )
    p.add_argument("--pages", default="", help='Pages to extract, e.g. "1-5,7".')
    p.add_argument("--lang", default="eng", help="Document language (default: %(default)s).")
    p.add_argument("--tag", default="default", help="Usage tag (default: %(default)s).")
    p.add_argument("--use-webhook", default="", help="Registered webhook name to notify.")
    p.add_argument("--webhook-metadata", default="", help="Opaque metadata echoed to the webhook.")
    p.add_argument(
        "--wait",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Wait for the job to finish (default: %(default)s).",
    )
    p.add_argument(
        "--wait-timeout",
        type=float,
        default=DEFAULT_WAIT_TIMEOUT_S,
        help="Maximum seconds to wait (default: %(default)s).",
    )
    p.add_argument("--text", action="store_true", help="Print only the extracted text.")
    p.add_argument("--output", default=None, help="Save the result to this file.")

    p = sub.add_parser("status", help="Show the status of a job.")
    p.add_argument("whisper_hash")

    p = sub.add_parser("retrieve", help="Fetch the extraction of a processed job.")
    p.add_argument("whisper_hash")
    p.add_argument("--text", action="store_true", help="Print only the extracted text.")
    p.add_argument("--output", default=None, help="Save the result to this file.")

    sub.add_parser("usage", help="Show quota and usage for the API key.")

    p = sub.add_parser("highlights", help="Fetch page positions of extracted lines.")
    p.add_argument("whisper_hash")
    p.add_argument("lines", help='Line ranges, e.g. "1-5,7,21-".')
    p.add_argument("--all-lines", action="store_true", help="Return every line.")

    p = sub.add_parser("webhook", help="Manage webhook callbacks.")
    p.add_argument("action", choices=["register", "get", "update", "delete"])
    p.add_argument("name", help="Webhook name.")
    p.add_argument("--url", default="", help="Callback URL (register/update).")
    p.add_argument("--auth-token", default="", help="Bearer token sent to the callback.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "webhook" and args.action in ("register", "update") and not args.url:
        parser.error("webhook {} requires --url".format(args.action))

    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        code = asyncio.run(_COMMANDS[args.command](args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except WhisperClientError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()

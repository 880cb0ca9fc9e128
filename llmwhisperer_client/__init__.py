"""LLMWhisperer Client: async Python client for the LLMWhisperer extraction service.

WHY: LLMWhisperer turns PDFs and scanned images into layout-preserving text,
but its job lifecycle is asynchronous and its responses differ between API
versions. This package exposes one consistent, typed interface for both.

HOW: Three layers. config resolves endpoints and credentials, api holds
the clients (request builder, completion poller, result normalizer), and
cli wraps the clients for terminal use.

RULES:
- Every submission returns a WhisperResult with a single status_code field
- Errors derive from WhisperClientError and always carry a status code
"""

__version__ = "0.1.0"

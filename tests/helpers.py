"""Test helpers for faking the model endpoint."""

import json

import httpx

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def completion(content, finish_reason: str = "stop") -> dict:
    """Chat-completions response body with a single choice."""
    if content is not None and not isinstance(content, str):
        content = json.dumps(content)
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "finish_reason": finish_reason,
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


def mock_client(handler) -> httpx.AsyncClient:
    """HTTP client answering every request with ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))

"""Helpers to extract image data and metadata from `generate_content` responses."""

from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional


def _first_candidate_parts(response: Any) -> List[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def extract_first_inline_image(response: Any) -> Optional[bytes]:
    """Return the bytes of the first part carrying inline image data, scanning in order."""
    for part in _first_candidate_parts(response):
        inline = getattr(part, "inline_data", None)
        data = getattr(inline, "data", None) if inline is not None else None
        if not data:
            continue
        if isinstance(data, str):
            # Some transports hand back base64 text instead of decoded bytes.
            return base64.b64decode(data)
        return bytes(data)
    return None


def extract_text(response: Any) -> str:
    """Join any text parts the model returned alongside (or instead of) an image."""
    texts = [getattr(part, "text", None) for part in _first_candidate_parts(response)]
    return " ".join(text.strip() for text in texts if text and text.strip())


def describe_empty_response(response: Any) -> str:
    """Summarise why a response carried no image (block reason, finish reason, model text)."""
    details: List[str] = []
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None) if feedback is not None else None
    if block_reason:
        details.append(f"block reason: {getattr(block_reason, 'value', block_reason)}")

    candidates = getattr(response, "candidates", None) or []
    if candidates:
        finish_reason = getattr(candidates[0], "finish_reason", None)
        if finish_reason:
            details.append(f"finish reason: {getattr(finish_reason, 'value', finish_reason)}")

    text = extract_text(response)
    if text:
        details.append(f"model said: {text[:300]}")
    return "; ".join(details)


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage if present."""
    usage = getattr(response, "usage_metadata", None)
    return {
        "input_tokens": getattr(usage, "prompt_token_count", None) if usage else None,
        "output_tokens": getattr(usage, "candidates_token_count", None) if usage else None,
    }

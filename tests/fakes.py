"""Builders for test images and fake Gemini responses."""

import io
import os
from types import SimpleNamespace

from PIL import Image


def make_image_bytes(image_format: str = "JPEG", size: tuple[int, int] = (64, 64)) -> bytes:
    """Return encoded image bytes of the requested format filled with noise."""
    img = Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3))
    out = io.BytesIO()
    img.save(out, format=image_format)
    return out.getvalue()


def make_response(*parts, finish_reason=None, usage=None, block_reason=None):
    """Build an object shaped like `GenerateContentResponse` with one candidate."""
    candidate = SimpleNamespace(
        content=SimpleNamespace(parts=list(parts)),
        finish_reason=finish_reason,
    )
    return SimpleNamespace(
        candidates=[candidate],
        usage_metadata=usage,
        prompt_feedback=SimpleNamespace(block_reason=block_reason) if block_reason else None,
    )


def image_part(data, mime_type: str = "image/png"):
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))


def text_part(text: str):
    return SimpleNamespace(text=text, inline_data=None)

"""
Pytest configuration and fixtures for the test suite.

Images are built with Pillow so encoder validation sees genuine file
headers. A GEMINI_API_KEY is set so the application lifespan can start.
"""

import os

import pytest

from fakes import make_image_bytes

os.environ.setdefault("GEMINI_API_KEY", "test-key")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")

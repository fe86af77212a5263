"""Turn user-selected image files into `EncodedImage` payloads.

The encoder validates the declared content type before touching the
file, reads at most one byte past the size limit, checks with Pillow
that the bytes are not some other image format than the declared one,
and returns the base64 payload.

Example:
    encoder = ImageEncoder(max_bytes=20 * 1024 * 1024)
    image = await encoder.encode(upload_file)
    image.data_url  # "data:image/jpeg;base64,..."
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from models.image_models import EncodedImage
from utils.config import DEFAULT_MAX_UPLOAD_BYTES
from utils.errors import ImageReadError, ValidationError
from utils.media_validation import ensure_image_matches_mime, validate_image_content_type

logger = logging.getLogger(__name__)


class ImageEncoder:
    """Encode uploaded image files.

    Args:
        max_bytes: Largest accepted file size in bytes.
    """

    def __init__(self, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> None:
        self.max_bytes = max_bytes

    async def encode(self, file: Any) -> EncodedImage:
        """Encode an upload (anything with `content_type` and an async `read(size)`).

        Raises:
            UnsupportedImageTypeError: If the content type is not `image/*`.
            ImageReadError: If reading the file fails.
            ValidationError: If the file is empty, too large, or an image
                of a different type than declared.
        """
        mime_type = validate_image_content_type(getattr(file, "content_type", None))
        name = getattr(file, "filename", None) or "upload"
        try:
            # One extra byte is enough to tell an oversized file apart.
            raw = await file.read(self.max_bytes + 1)
        except OSError as exc:
            logger.error("Failed to read uploaded image %s: %s", name, exc)
            raise ImageReadError(f"Unable to read uploaded image: {exc}") from exc
        return await self._encode_bytes(raw, mime_type, name)

    async def _encode_bytes(self, raw: bytes, mime_type: str, name: str) -> EncodedImage:
        if not raw:
            raise ValidationError("Uploaded image is empty.")
        if len(raw) > self.max_bytes:
            raise ValidationError(f"Uploaded image exceeds the {self.max_bytes} byte limit.")

        # Pillow parsing is blocking -> run in thread
        await asyncio.to_thread(ensure_image_matches_mime, raw, mime_type)

        image = EncodedImage.from_bytes(raw, mime_type)
        logger.info("Encoded %s (%s, %d bytes)", name, mime_type, len(raw))
        return image

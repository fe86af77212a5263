"""Validation helpers for uploaded image content."""

import io
import re
from typing import Optional

from PIL import Image, UnidentifiedImageError

from utils.errors import UnsupportedImageTypeError, ValidationError

DATA_URL_PREFIX = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,", re.IGNORECASE)

MIME_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-png": "image/png",
    # Pillow reports JPEGs carrying multi-picture (MPF) data as MPO.
    "image/mpo": "image/jpeg",
}


def normalize_mime_type(mime_type: Optional[str]) -> str:
    """Lower-case a content type, drop parameters, and resolve common aliases."""
    if not mime_type:
        return ""
    base = mime_type.lower().split(";", 1)[0].strip()
    return MIME_ALIASES.get(base, base)


def validate_image_content_type(content_type: Optional[str]) -> str:
    """Return the declared content type, rejecting anything that is not `image/*`."""
    if not content_type or not normalize_mime_type(content_type).startswith("image/"):
        raise UnsupportedImageTypeError(f"Please upload an image file (got {content_type or 'unknown type'}).")
    return content_type.split(";", 1)[0].strip()


def split_data_url(text: str) -> tuple[Optional[str], str]:
    """Split a data URL into `(mime_type, base64_body)`.

    Text without a data URL prefix is returned unchanged with a `None` MIME type.
    """
    match = DATA_URL_PREFIX.match(text)
    if match is None:
        return None, text
    return match.group("mime"), text[match.end():]


def strip_data_url_prefix(text: str) -> str:
    """Return only the base64 body of a data URL (or the text itself)."""
    return split_data_url(text)[1]


def ensure_image_matches_mime(raw: bytes, mime_type: str) -> None:
    """Reject bytes that Pillow recognises as a different image format than `mime_type`.

    Formats Pillow cannot identify (HEIC/HEIF without a plugin, AVIF on older
    builds) pass unchecked, since the content type already says `image/*`.
    Pillow only reads the header and verifies the structure; pixel data is not decoded.

    Raises:
        ValidationError: If a recognised image is damaged or its format differs.
    """
    try:
        with Image.open(io.BytesIO(raw)) as img:
            image_format = img.format
            img.verify()
    except UnidentifiedImageError:
        return
    except (OSError, SyntaxError, ValueError) as exc:
        raise ValidationError("Uploaded file is not a readable image.") from exc

    detected = normalize_mime_type(Image.MIME.get(image_format or "", ""))
    declared = normalize_mime_type(mime_type)
    if detected and detected != declared:
        raise ValidationError(
            f"Image content ({detected}) does not match declared type {declared}."
        )

"""Value types for images in transit and for edit requests/results."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Optional

from utils.errors import ImageEditError, ValidationError
from utils.media_validation import split_data_url

OUTPUT_MIME_TYPE = "image/png"
ERROR_MESSAGE_PREFIX = "Failed to generate image. Please try again. "


@dataclass(frozen=True)
class EncodedImage:
    """An image as a MIME type plus a base64 payload without data URL prefix.

    Attributes:
        mime_type: Declared image MIME type, e.g. ``image/jpeg``.
        payload: Base64 text of the image bytes.
    """

    mime_type: str
    payload: str

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> "EncodedImage":
        return cls(mime_type=mime_type, payload=base64.b64encode(raw).decode("ascii"))

    @classmethod
    def from_data_url(cls, text: str, mime_type: Optional[str] = None) -> "EncodedImage":
        """Parse a data URL, or bare base64 text when `mime_type` is given.

        Raises:
            ValidationError: If no MIME type is known or the body is not base64.
        """
        prefix_mime, body = split_data_url(text.strip())
        resolved = prefix_mime or mime_type
        if not resolved:
            raise ValidationError("A MIME type is required for bare base64 image data.")
        image = cls(mime_type=resolved, payload=body)
        image.to_bytes()
        return image

    @property
    def data_url(self) -> str:
        """The payload as a ``data:<mime>;base64,...`` string usable as an <img> source."""
        return f"data:{self.mime_type};base64,{self.payload}"

    def to_bytes(self) -> bytes:
        """Decode the payload strictly.

        Raises:
            ValidationError: If the payload is not valid base64.
        """
        try:
            return base64.b64decode(self.payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError("Image payload is not valid base64.") from exc

    @property
    def size_bytes(self) -> int:
        return len(self.to_bytes())


@dataclass(frozen=True)
class EditRequest:
    """A single edit: the source image and the user's free-text instruction."""

    source_image: EncodedImage
    instruction: str


@dataclass(frozen=True)
class EditResult:
    """Outcome of one edit request.

    Exactly one of `image` and `error` is set. Token counts are reported
    only when the service returns usage metadata.
    """

    image: Optional[EncodedImage] = None
    error: Optional[ImageEditError] = None
    latency: float = 0.0
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.image is None) == (self.error is None):
            raise ValueError("EditResult needs exactly one of image or error.")

    @classmethod
    def success(
        cls,
        image: EncodedImage,
        *,
        latency: float = 0.0,
        input_tokens: Optional[int] = None,
        output_tokens: Optional[int] = None,
    ) -> "EditResult":
        return cls(image=image, latency=latency, input_tokens=input_tokens, output_tokens=output_tokens)

    @classmethod
    def failure(cls, error: ImageEditError, *, latency: float = 0.0) -> "EditResult":
        return cls(error=error, latency=latency)

    @property
    def ok(self) -> bool:
        return self.image is not None

    @property
    def message(self) -> Optional[str]:
        """User-facing error text, or None for a success."""
        if self.error is None:
            return None
        return ERROR_MESSAGE_PREFIX + str(self.error)

"""Error taxonomy for image encoding, editing, and startup configuration."""

from __future__ import annotations

from typing import Optional


class ImageEditError(Exception):
    """Base class for errors raised while preparing or editing an image.

    Attributes:
        status_code: HTTP status used when the error reaches the API layer.
    """

    status_code: int = 500
    kind: str = "error"


class ValidationError(ImageEditError):
    """Input is missing or not an acceptable image."""

    status_code = 400
    kind = "validation"


class UnsupportedImageTypeError(ValidationError):
    """The declared content type is not an image type."""

    status_code = 415


class ImageReadError(ImageEditError, OSError):
    """The uploaded file could not be read."""

    status_code = 400
    kind = "io"


class ServiceError(ImageEditError):
    """Transport or service-level failure while talking to the image model."""

    status_code = 502
    kind = "service"

    def __init__(self, message: str, upstream_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class EmptyResultError(ImageEditError):
    """The image model answered but returned no image."""

    status_code = 502
    kind = "empty_result"


class ConfigurationError(ImageEditError, RuntimeError):
    """A required setting is missing; the application must not start."""

    kind = "configuration"

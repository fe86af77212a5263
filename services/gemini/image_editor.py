"""Description: Photorealistic image editing through the Gemini `generate_content` API."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from models.image_models import OUTPUT_MIME_TYPE, EditRequest, EditResult, EncodedImage
from services.gemini.edit_prompts import build_edit_instruction
from services.gemini.response_parser import (
    describe_empty_response,
    extract_first_inline_image,
    extract_usage,
)
from utils.config import DEFAULT_IMAGE_MODEL
from utils.errors import EmptyResultError, ImageEditError, ServiceError
from utils.media_validation import normalize_mime_type

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "No image generated in the response."


class ImageEditService:
    """Send one image plus instruction to Gemini and return the edited image."""

    def __init__(self, client: genai.Client, model: str = DEFAULT_IMAGE_MODEL) -> None:
        """Initialize the service with a Google GenAI client."""
        if client is None:
            raise ValueError("Google GenAI client must be provided.")
        self.client = client
        self.model = model

    def build_contents(self, request: EditRequest) -> list[types.Content]:
        """Build the single-turn request: inline image part followed by the instruction."""
        source = request.source_image
        return [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(
                        data=source.to_bytes(),
                        mime_type=normalize_mime_type(source.mime_type),
                    ),
                    types.Part.from_text(text=build_edit_instruction(request.instruction)),
                ],
            )
        ]

    async def edit(self, request: EditRequest) -> Dict[str, Any]:
        """Run one edit and return the image with latency and token usage.

        Raises:
            ServiceError: If the API call fails or the response is malformed.
            EmptyResultError: If the response holds no inline image part.
        """
        start_time = time.time()
        contents = self.build_contents(request)
        response = await self._generate(contents)
        image_bytes = self._parse_response(response)
        result: Dict[str, Any] = {
            "image": EncodedImage.from_bytes(image_bytes, OUTPUT_MIME_TYPE),
            "latency": time.time() - start_time,
        }
        result.update(extract_usage(response))
        return result

    async def submit(self, request: EditRequest) -> EditResult:
        """Run one edit and fold pipeline failures into a failed `EditResult`."""
        start_time = time.time()
        try:
            outcome = await self.edit(request)
        except ImageEditError as exc:
            return EditResult.failure(exc, latency=time.time() - start_time)
        return EditResult.success(
            outcome["image"],
            latency=outcome["latency"],
            input_tokens=outcome.get("input_tokens"),
            output_tokens=outcome.get("output_tokens"),
        )

    async def _generate(self, contents: list[types.Content]) -> Any:
        """Send the request to the Gemini API exactly once."""
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
            )
        except genai_errors.APIError as exc:
            logger.error("Gemini API error (%s): %s", exc.code, exc)
            raise ServiceError(str(exc), upstream_status=exc.code) from exc
        except Exception as exc:
            logger.error("Error during Gemini generate_content call: %s", exc)
            raise ServiceError(str(exc) or exc.__class__.__name__) from exc

        if response is None or not hasattr(response, "candidates"):
            logger.error("Malformed Gemini response: %r", response)
            raise ServiceError("Malformed response from the image service.")
        return response

    def _parse_response(self, response: Any) -> bytes:
        """Return the first inline image in the response."""
        image_bytes = extract_first_inline_image(response)
        if image_bytes:
            return image_bytes

        detail = describe_empty_response(response)
        logger.warning("Gemini returned no image part (%s)", detail or "no details")
        if detail:
            raise EmptyResultError(f"{NO_IMAGE_MESSAGE} ({detail})")
        raise EmptyResultError(NO_IMAGE_MESSAGE)

# end of ImageEditService

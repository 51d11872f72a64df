"""Gemini composition requester.

Sends the backdrop, the subject image and a fixed retouching prompt to the
image model in one request and returns the first inline image of the reply
as a data URI.
"""

import base64
import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from config.settings import settings
from .model import CompositionConfig, ImagePayload

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "No image generated in the response."
GENERIC_ERROR_MESSAGE = "Unexpected error while processing the composition."
DEFAULT_IMAGE_MIME = "image/png"

BASE_PROMPT = """Act as a professional photo retoucher who specialises in compositing.

You are given two images:
1. The first image is the BACKDROP.
2. The second image contains the SUBJECT (an object or a person).

Your task:
1. Cut the subject out of the second image, removing its original background completely and precisely.
2. Place the cut-out subject on the BACKDROP so that it looks real.
3. Composition adjustments (CRUCIAL):
   - Match the colour temperature of the subject to the backdrop.
   - Adjust exposure, contrast and black levels of the subject so it belongs in the scene.
   - Generate realistic contact shadows and cast shadows that follow the light direction of the backdrop.
"""

CLOSING_PROMPT = "Return ONLY the final composite image in high quality."


class GenerationError(RuntimeError):
    """Model call failed or returned no image."""


def build_prompt(config: CompositionConfig) -> str:
    parts = [BASE_PROMPT]
    if config.instruction:
        parts.append(f'Additional instruction from the user: "{config.instruction}"\n')
    parts.append(CLOSING_PROMPT)
    return "\n".join(parts)


def _image_part(image: ImagePayload) -> types.Part:
    return types.Part.from_bytes(data=image.raw_bytes(), mime_type=image.mime_type)


def extract_image_data_uri(response: Any) -> str:
    """
    Lấy part đầu tiên có inline_data trong candidate đầu tiên.
    Raise GenerationError nếu không có ảnh.
    """
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        content = getattr(candidates[0], "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is None or not inline.data:
                continue
            data = inline.data
            if isinstance(data, bytes):
                data = base64.b64encode(data).decode("ascii")
            mime_type = inline.mime_type or DEFAULT_IMAGE_MIME
            return f"data:{mime_type};base64,{data}"

    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None)
    if block_reason:
        logger.warning("[Composer] No image returned, block_reason=%s", block_reason)
    raise GenerationError(NO_IMAGE_MESSAGE)


def _error_message(exc: Exception) -> str:
    # google.genai.errors.APIError mang sẵn message của API
    message = getattr(exc, "message", None) or str(exc)
    return message or GENERIC_ERROR_MESSAGE


def get_client() -> genai.Client:
    return genai.Client(api_key=settings.GEMINI_API_KEY)


async def generate(
    backdrop: ImagePayload,
    asset: ImagePayload,
    config: CompositionConfig,
    client: Optional[genai.Client] = None,
) -> str:
    """Compose `asset` onto `backdrop` and return the result as a data URI.

    Contents go out in a fixed order: backdrop, asset, prompt text. There is
    no retry and no timeout; every failure becomes a GenerationError.
    """
    prompt = build_prompt(config)
    logger.info(
        "[Composer] Sending composition request, model=%s, instruction=%s",
        settings.GEMINI_MODEL,
        bool(config.instruction),
    )

    try:
        if client is None:
            client = get_client()
        response = await client.aio.models.generate_content(
            model=settings.GEMINI_MODEL,
            contents=[_image_part(backdrop), _image_part(asset), prompt],
        )
    except Exception as e:
        logger.exception("[Composer] Error generating composition")
        raise GenerationError(_error_message(e)) from e

    data_uri = extract_image_data_uri(response)
    logger.info("[Composer] Got composite image (%d chars)", len(data_uri))
    return data_uri

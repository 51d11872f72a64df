import asyncio
import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from backend import composer
from backend.composer import (
    GENERIC_ERROR_MESSAGE,
    NO_IMAGE_MESSAGE,
    GenerationError,
    build_prompt,
    extract_image_data_uri,
    generate,
)
from backend.model import CompositionConfig, ImagePayload
from conftest import JPEG_BYTES, PNG_BYTES, image_response, inline_part, text_part


def payload(data, mime_type):
    return ImagePayload(base64=base64.b64encode(data).decode("ascii"), mime_type=mime_type)


def fake_client(response=None, error=None):
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=error)
    return client


def run_generate(client, config=None):
    return asyncio.run(generate(
        payload(PNG_BYTES, "image/png"),
        payload(JPEG_BYTES, "image/jpeg"),
        config or CompositionConfig(),
        client=client,
    ))


class FakeAPIError(Exception):
    def __init__(self, message):
        super().__init__(message)
        self.message = message


def test_prompt_without_instruction():
    prompt = build_prompt(CompositionConfig())
    assert "BACKDROP" in prompt
    assert "shadows" in prompt
    assert "Additional instruction" not in prompt


def test_prompt_appends_instruction_verbatim():
    prompt = build_prompt(CompositionConfig(instruction="light from the right"))
    assert 'Additional instruction from the user: "light from the right"' in prompt
    assert prompt.rstrip().endswith("high quality.")


def test_prompt_ignores_flags():
    on = build_prompt(CompositionConfig(instruction="x"))
    off = build_prompt(CompositionConfig(
        match_lighting=False, match_color_temp=False, soft_shadows=False, instruction="x",
    ))
    assert on == off


def test_extract_returns_first_inline_image():
    response = image_response([
        text_part("here you go"),
        inline_part(b"first", "image/png"),
        inline_part(b"second", "image/jpeg"),
    ])
    expected = "data:image/png;base64," + base64.b64encode(b"first").decode("ascii")
    assert extract_image_data_uri(response) == expected


def test_extract_keeps_string_payload():
    response = image_response([inline_part("QUJD", "image/png")])
    assert extract_image_data_uri(response) == "data:image/png;base64,QUJD"


def test_extract_defaults_mime_type():
    response = image_response([inline_part("QUJD", None)])
    assert extract_image_data_uri(response) == "data:image/png;base64,QUJD"


@pytest.mark.parametrize("response", [
    SimpleNamespace(candidates=[], prompt_feedback=None),
    SimpleNamespace(candidates=None, prompt_feedback=SimpleNamespace(block_reason="SAFETY")),
    SimpleNamespace(candidates=[SimpleNamespace(content=None)], prompt_feedback=None),
    image_response([text_part("sorry, no image")]),
])
def test_extract_without_image_raises(response):
    with pytest.raises(GenerationError, match=NO_IMAGE_MESSAGE):
        extract_image_data_uri(response)


def test_generate_sends_images_then_prompt(monkeypatch):
    monkeypatch.setattr(composer.settings, "GEMINI_MODEL", "test-model")
    client = fake_client(image_response([inline_part(b"out", "image/webp")]))

    result = run_generate(client, CompositionConfig(instruction="warmer"))

    assert result == "data:image/webp;base64," + base64.b64encode(b"out").decode("ascii")
    kwargs = client.aio.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "test-model"
    first, second, prompt = kwargs["contents"]
    assert first.inline_data.data == PNG_BYTES
    assert first.inline_data.mime_type == "image/png"
    assert second.inline_data.data == JPEG_BYTES
    assert second.inline_data.mime_type == "image/jpeg"
    assert '"warmer"' in prompt


def test_generate_no_candidates():
    client = fake_client(SimpleNamespace(candidates=[], prompt_feedback=None))
    with pytest.raises(GenerationError) as exc:
        run_generate(client)
    assert "no image generated" in str(exc.value).lower()


def test_generate_propagates_api_message():
    client = fake_client(error=FakeAPIError("API key not valid"))
    with pytest.raises(GenerationError, match="API key not valid"):
        run_generate(client)


def test_generate_uses_exception_text():
    client = fake_client(error=ConnectionError("network unreachable"))
    with pytest.raises(GenerationError, match="network unreachable"):
        run_generate(client)


def test_generate_generic_message_when_none_available():
    client = fake_client(error=RuntimeError())
    with pytest.raises(GenerationError) as exc:
        run_generate(client)
    assert str(exc.value) == GENERIC_ERROR_MESSAGE


def test_generate_missing_key_fails_at_call_time(monkeypatch):
    def boom():
        raise ValueError("Missing key inputs argument!")

    monkeypatch.setattr(composer, "get_client", boom)
    with pytest.raises(GenerationError, match="Missing key"):
        run_generate(None)

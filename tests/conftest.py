import base64
from types import SimpleNamespace

import pytest

from frontend.intake import PreviewStore, UploadedImage

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png-body"
JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-body"


class FakeUpload:
    """Mimics streamlit's UploadedFile."""

    def __init__(self, name, type, data):
        self.name = name
        self.type = type
        self._data = data

    def getvalue(self):
        return self._data


def image_response(parts):
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))],
        prompt_feedback=None,
    )


def inline_part(data, mime_type="image/png"):
    return SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)


def text_part(text):
    return SimpleNamespace(inline_data=None, text=text)


@pytest.fixture
def previews():
    return PreviewStore()


@pytest.fixture
def backdrop(previews):
    return UploadedImage(
        filename="scene.png",
        preview_ref=previews.create(PNG_BYTES),
        base64=base64.b64encode(PNG_BYTES).decode("ascii"),
        mime_type="image/png",
    )


@pytest.fixture
def asset(previews):
    return UploadedImage(
        filename="subject.jpg",
        preview_ref=previews.create(JPEG_BYTES),
        base64=base64.b64encode(JPEG_BYTES).decode("ascii"),
        mime_type="image/jpeg",
    )

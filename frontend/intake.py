"""Image intake for the two upload slots.

`acquire` turns an uploaded file into an UploadedImage (preview ref + base64
payload). `replace_slot` swaps a slot's image and releases the old preview.
"""

import base64
import logging
import uuid
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

from backend.model import ImagePayload

logger = logging.getLogger(__name__)


class UploadedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    preview_ref: str
    base64: str
    mime_type: str

    def payload(self) -> ImagePayload:
        return ImagePayload(base64=self.base64, mime_type=self.mime_type)


class PreviewStore:
    """Session-scoped preview bytes, keyed by an opaque reference."""

    def __init__(self):
        self._items: Dict[str, bytes] = {}

    def create(self, data: bytes) -> str:
        ref = f"preview:{uuid.uuid4().hex}"
        self._items[ref] = data
        return ref

    def get(self, ref: str) -> Optional[bytes]:
        return self._items.get(ref)

    def release(self, ref: str) -> None:
        self._items.pop(ref, None)

    def __contains__(self, ref: str) -> bool:
        return ref in self._items

    def __len__(self) -> int:
        return len(self._items)


def is_image(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.startswith("image/")


def acquire(raw_file, previews: PreviewStore) -> Optional[UploadedImage]:
    """
    raw_file: object kiểu Streamlit UploadedFile (name, type, getvalue()).
    Trả về None nếu file không phải ảnh hoặc không encode được.
    """
    content_type = getattr(raw_file, "type", None)
    if not is_image(content_type):
        logger.info("[Intake] Ignoring non-image file %r (%s)", getattr(raw_file, "name", None), content_type)
        return None

    filename = getattr(raw_file, "name", None) or "image"
    try:
        data = raw_file.getvalue()
        encoded = base64.b64encode(data).decode("ascii")
    except Exception:
        logger.exception("[Intake] Error processing file %r", filename)
        return None

    return UploadedImage(
        filename=filename,
        preview_ref=previews.create(data),
        base64=encoded,
        mime_type=content_type,
    )


def replace_slot(
    previews: PreviewStore,
    current: Optional[UploadedImage],
    new: Optional[UploadedImage],
) -> Optional[UploadedImage]:
    """Return the slot's new value, releasing the preview it replaces."""
    if current is not None and (new is None or new.preview_ref != current.preview_ref):
        previews.release(current.preview_ref)
    return new


def select_file(
    previews: PreviewStore,
    current: Optional[UploadedImage],
    raw_file,
) -> Optional[UploadedImage]:
    """
    Giá trị mới của slot khi file_uploader đổi.
    raw_file None = người dùng xoá file -> slot rỗng.
    File không hợp lệ -> giữ nguyên `current`.
    """
    if raw_file is None:
        return replace_slot(previews, current, None)
    image = acquire(raw_file, previews)
    if image is None:
        return current
    return replace_slot(previews, current, image)

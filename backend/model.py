# backend/model.py
import base64
import binascii
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ImagePayload(BaseModel):
    """Ảnh đã mã hoá base64 + MIME type, đúng như frontend gửi lên."""

    model_config = ConfigDict(frozen=True)

    base64: str
    mime_type: str

    @field_validator("mime_type")
    @classmethod
    def _must_be_image(cls, value: str) -> str:
        if not value.startswith("image/"):
            raise ValueError(f"not an image MIME type: {value}")
        return value

    @field_validator("base64")
    @classmethod
    def _must_decode(cls, value: str) -> str:
        if not value:
            raise ValueError("empty image payload")
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"invalid base64 payload: {e}")
        return value

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.base64)


class CompositionConfig(BaseModel):
    # 3 flag này luôn True và không được dùng khi build prompt
    model_config = ConfigDict(frozen=True)

    match_lighting: bool = True
    match_color_temp: bool = True
    soft_shadows: bool = True
    instruction: Optional[str] = None


class ComposeRequest(BaseModel):
    backdrop: ImagePayload
    asset: ImagePayload
    config: CompositionConfig = CompositionConfig()


class ComposeResponse(BaseModel):
    image: str  # data URI


class HealthResponse(BaseModel):
    status: str
    model: str
    api_key_configured: bool

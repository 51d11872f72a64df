from typing import Optional

import requests

from backend.model import CompositionConfig
from config.settings import settings
from .intake import UploadedImage


class ComposeRequestError(RuntimeError):
    pass


def _error_detail(resp: requests.Response) -> Optional[str]:
    try:
        detail = resp.json().get("detail")
    except ValueError:
        return resp.text or None
    if isinstance(detail, list):
        # lỗi validate 422 của FastAPI
        return "; ".join(str(d.get("msg", d)) for d in detail) or None
    return detail


def call_compose(
    backdrop: UploadedImage,
    asset: UploadedImage,
    config: CompositionConfig,
    backend_url: Optional[str] = None,
) -> str:
    """Gọi POST /compose -> trả về data URI của ảnh kết quả"""
    payload = {
        "backdrop": backdrop.payload().model_dump(),
        "asset": asset.payload().model_dump(),
        "config": config.model_dump(),
    }
    url = f"{(backend_url or settings.BACKEND_URL).rstrip('/')}/compose"

    try:
        resp = requests.post(url, json=payload, timeout=settings.COMPOSE_TIMEOUT)
    except requests.RequestException as e:
        raise ComposeRequestError(str(e)) from e

    if resp.status_code != 200:
        raise ComposeRequestError(_error_detail(resp) or f"Backend returned {resp.status_code}")

    image = resp.json().get("image")
    if not image:
        raise ComposeRequestError("Backend response did not include an image")
    return image

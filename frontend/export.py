import base64
import binascii
import re
import time
from typing import Optional, Tuple

from .state import StudioState

DOWNLOAD_PREFIX = "lumina-composition-"

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def get_timestamp_ms() -> int:
    return int(time.time() * 1000)


def download_filename(now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = get_timestamp_ms()
    return f"{DOWNLOAD_PREFIX}{now_ms}.png"


def data_uri_to_bytes(uri: str) -> Tuple[str, bytes]:
    """Tách data URI thành (mime, bytes)."""
    m = _DATA_URI_RE.match(uri or "")
    if not m:
        raise ValueError("not a base64 data URI")
    try:
        data = base64.b64decode(m.group("data"), validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 in data URI: {e}")
    return m.group("mime"), data


def prepare_download(state: StudioState, now_ms: Optional[int] = None) -> Optional[Tuple[str, bytes, str]]:
    """(file_name, data, mime) for the stored result, or None."""
    if not state.result:
        return None
    mime, data = data_uri_to_bytes(state.result)
    return download_filename(now_ms), data, mime

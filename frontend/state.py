"""Studio UI state machine.

The whole UI state is one frozen StudioState. Every change goes through
`reduce(state, action)`, so transitions can be tested without Streamlit.
`request_id` is the token of the single in-flight generation: a second
Generate is ignored while it is set, and Resolve/Reject carrying another
token are dropped.
"""

import logging
import uuid
from enum import Enum
from typing import Callable, Optional, Union

from pydantic import BaseModel, ConfigDict

from backend.model import CompositionConfig
from .intake import UploadedImage

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred."


class ProcessingStatus(str, Enum):
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"  # không dùng: intake là đồng bộ
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class StudioState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ProcessingStatus = ProcessingStatus.IDLE
    backdrop: Optional[UploadedImage] = None
    asset: Optional[UploadedImage] = None
    result: Optional[str] = None
    error: Optional[str] = None
    request_id: Optional[str] = None

    @property
    def can_generate(self) -> bool:
        return (
            self.backdrop is not None
            and self.asset is not None
            and self.status != ProcessingStatus.PROCESSING
        )


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class SetBackdrop(_Action):
    image: Optional[UploadedImage] = None


class SetAsset(_Action):
    image: Optional[UploadedImage] = None


class Generate(_Action):
    pass


class Resolve(_Action):
    request_id: str
    image: str


class Reject(_Action):
    request_id: str
    message: Optional[str] = None


class Cancel(_Action):
    pass


class Discard(_Action):
    pass


Action = Union[SetBackdrop, SetAsset, Generate, Resolve, Reject, Cancel, Discard]

Requester = Callable[[UploadedImage, UploadedImage, CompositionConfig], str]


def gen_request_id() -> str:
    return str(uuid.uuid4())


def reduce(state: StudioState, action: Action) -> StudioState:
    if isinstance(action, SetBackdrop):
        return state.model_copy(update={"backdrop": action.image})

    if isinstance(action, SetAsset):
        return state.model_copy(update={"asset": action.image})

    if isinstance(action, Generate):
        if not state.can_generate:
            return state
        return state.model_copy(update={
            "status": ProcessingStatus.PROCESSING,
            "error": None,
            "request_id": gen_request_id(),
        })

    if isinstance(action, Resolve):
        if action.request_id != state.request_id:
            logger.info("[Studio] Dropping stale result for request %s", action.request_id)
            return state
        return state.model_copy(update={
            "status": ProcessingStatus.COMPLETED,
            "result": action.image,
            "request_id": None,
        })

    if isinstance(action, Reject):
        if action.request_id != state.request_id:
            logger.info("[Studio] Dropping stale error for request %s", action.request_id)
            return state
        return state.model_copy(update={
            "status": ProcessingStatus.ERROR,
            "error": action.message or GENERIC_ERROR_MESSAGE,
            "request_id": None,
        })

    if isinstance(action, Cancel):
        if state.status != ProcessingStatus.PROCESSING:
            return state
        return state.model_copy(update={"status": ProcessingStatus.IDLE, "request_id": None})

    if isinstance(action, Discard):
        return state.model_copy(update={"result": None})

    raise TypeError(f"Unknown action: {action!r}")


def build_config(instruction: str) -> CompositionConfig:
    return CompositionConfig(
        match_lighting=True,
        match_color_temp=True,
        soft_shadows=True,
        instruction=instruction.strip() or None,
    )


def run_generation(
    get_state: Callable[[], StudioState],
    set_state: Callable[[StudioState], None],
    requester: Requester,
    instruction: str = "",
) -> StudioState:
    """Run one generate cycle: PROCESSING, then COMPLETED or ERROR.

    The outcome is reduced onto whatever `get_state()` holds when the
    requester returns, so a Cancel or slot change made meanwhile is kept
    and a result for a stale request_id is dropped. Does nothing when
    Generate is not allowed.
    """
    state = get_state()
    started = reduce(state, Generate())
    if started is state:
        return state
    set_state(started)

    request_id = started.request_id
    try:
        image = requester(started.backdrop, started.asset, build_config(instruction))
    except Exception as e:
        logger.error("[Studio] Generation failed: %s", e)
        outcome = Reject(request_id=request_id, message=str(e))
    else:
        outcome = Resolve(request_id=request_id, image=image)

    current = get_state()
    final = reduce(current, outcome)
    if final is not current:
        set_state(final)
    return final

import logging

import streamlit as st

from config.settings import settings, configure_logging
from frontend.api import call_compose
from frontend.export import prepare_download
from frontend.intake import PreviewStore, select_file
from frontend.state import (
    Cancel,
    Discard,
    ProcessingStatus,
    SetAsset,
    SetBackdrop,
    StudioState,
    reduce,
    run_generation,
)

configure_logging()
logger = logging.getLogger(__name__)

SLOT_ACTIONS = {"backdrop": SetBackdrop, "asset": SetAsset}


def get_state() -> StudioState:
    return st.session_state["studio"]


def set_state(state: StudioState) -> None:
    st.session_state["studio"] = state


def dispatch(action) -> StudioState:
    state = reduce(get_state(), action)
    set_state(state)
    return state


def on_upload(slot: str) -> None:
    """Callback của file_uploader: thay ảnh trong slot hoặc xoá slot"""
    raw = st.session_state.get(f"{slot}_file")
    previews: PreviewStore = st.session_state["previews"]
    current = getattr(get_state(), slot)

    new = select_file(previews, current, raw)
    if new is not current:
        dispatch(SLOT_ACTIONS[slot](image=new))


def render_slot(slot: str, label: str, help_text: str) -> None:
    st.file_uploader(
        label,
        key=f"{slot}_file",
        help=help_text,
        on_change=on_upload,
        args=(slot,),
    )
    image = getattr(get_state(), slot)
    if image is not None:
        preview = st.session_state["previews"].get(image.preview_ref)
        if preview is not None:
            st.image(preview, caption=image.filename, width="stretch")


# ==========================
# Cấu hình
# ==========================
st.set_page_config(
    page_title="Lumina Studio AI",
    page_icon="⚡",
    layout="wide"
)

st.title("⚡ Lumina Studio AI")
st.caption("Upload a backdrop and a subject. The model cuts the subject out, places it in the scene and matches the lighting.")

# ==========================
# State
# ==========================
if "studio" not in st.session_state:
    st.session_state["studio"] = StudioState()

if "previews" not in st.session_state:
    st.session_state["previews"] = PreviewStore()

# ==========================
# Sidebar
# ==========================
with st.sidebar:
    st.header("⚙️ Settings")
    st.markdown(f"**🤖 Model:** `{settings.GEMINI_MODEL}`")
    st.write("🔗 Backend:", settings.BACKEND_URL)
    st.markdown("---")
    st.markdown("### 💡 Examples")
    st.code("make the light come from the right")
    st.code("add a soft reflection on the floor")

left, right = st.columns(2, gap="large")

# ==========================
# Inputs
# ==========================
with left:
    col1, col2 = st.columns(2)
    with col1:
        render_slot("backdrop", "1. Backdrop", "Scene, studio or landscape")
    with col2:
        render_slot("asset", "2. Subject", "Person or object")

    instruction = st.text_area(
        "Optional instructions",
        placeholder="e.g. make the light come from the right, add a soft reflection on the floor...",
        height=100,
    )

    state = get_state()
    generate_clicked = st.button(
        "Generate composition",
        type="primary",
        disabled=not state.can_generate,
        width="stretch",
    )
    if state.status == ProcessingStatus.PROCESSING:
        st.button("✖️ Cancel", on_click=dispatch, args=(Cancel(),), width="stretch")

# ==========================
# Result
# ==========================
with right:
    st.subheader("Result")

    if generate_clicked:
        with st.spinner("🎨 Analysing lighting and cutting out the subject..."):
            # PROCESSING được lưu trước khi gọi backend; rerun trong lúc chờ vẫn
            # Cancel được, kết quả trễ bị bỏ qua theo request_id
            run_generation(get_state, set_state, call_compose, instruction)
        st.rerun()

    state = get_state()

    if state.status == ProcessingStatus.PROCESSING:
        st.info("⏳ A composition request is still pending. Cancel it to start over.")
    elif state.result:
        if state.status == ProcessingStatus.COMPLETED:
            st.success("✅ Render complete")
        # file_name của download_button cố định lúc render: mỗi rerun lấy timestamp mới
        file_name, data, mime = prepare_download(state)
        st.image(data, caption="✨ Composition", width="stretch")

        c1, c2 = st.columns(2)
        with c1:
            st.button("🗑️ Discard", on_click=dispatch, args=(Discard(),), width="stretch")
        with c2:
            st.download_button(
                "⬇️ Download HD",
                data=data,
                file_name=file_name,
                mime=mime,
                width="stretch",
            )
    else:
        st.markdown("#### Preview")
        st.caption("The final result appears here with lighting and colours corrected automatically.")

    if state.error:
        st.error(f"❌ Processing error: {state.error}")

import streamlit as st
from contextlib import contextmanager
from typing import Optional

from core.charts import EMPTY_STATE_TEXT, build_line_chart
from core.errors import IngestionError, UploadInProgress, WorkspaceError
from core.instances import ChartInstanceManager
from core.settings import ACCEPTED_EXTENSIONS

# Nominal surface width used to turn button presses into wheel/drag gestures.
SURFACE_WIDTH = 1000.0
PAN_STEP = 0.25


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e2e8f0;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.2rem;color: #1e293b;}
        .card-actions {font-size: 0.85rem;color: #64748b;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def get_workspace() -> ChartInstanceManager:
    if "workspace" not in st.session_state:
        st.session_state["workspace"] = ChartInstanceManager()
    return st.session_state["workspace"]


# ---------- gesture callbacks ----------
def zoom(ws: ChartInstanceManager, chart_id: Optional[str], delta_y: float, anchor_key: str):
    anchor = st.session_state.get(anchor_key, 50) / 100.0
    ws.viewport_for(chart_id).zoom(anchor * SURFACE_WIDTH, SURFACE_WIDTH, delta_y)


def pan(ws: ChartInstanceManager, chart_id: Optional[str], direction: int):
    viewport = ws.viewport_for(chart_id)
    start_x = SURFACE_WIDTH / 2
    viewport.begin_pan(start_x)
    viewport.continue_pan(start_x + direction * PAN_STEP * SURFACE_WIDTH, SURFACE_WIDTH)
    viewport.end_pan()


def series_toggles(ws: ChartInstanceManager, chart_id: Optional[str], key_prefix: str):
    payload = ws.render(chart_id)
    if not payload.value_headers:
        return
    cols = st.columns(min(len(payload.value_headers), 6))
    for idx, header in enumerate(payload.value_headers):
        cols[idx % len(cols)].checkbox(
            header,
            value=header not in payload.hidden_series,
            key=f"{key_prefix}-series-{idx}-{header}",
            on_change=ws.toggle_series,
            args=(chart_id, header),
        )


def chart_display(ws: ChartInstanceManager, chart_id: Optional[str], key_prefix: str):
    payload = ws.render(chart_id)
    if payload.is_empty:
        st.info(EMPTY_STATE_TEXT)
        return

    anchor_key = f"{key_prefix}-anchor"
    info, controls = st.columns([3, 5])
    info.caption(payload.caption)
    c1, c2, c3, c4, c5 = controls.columns(5)
    c1.button("➕ Yakınlaştır", key=f"{key_prefix}-zin", on_click=zoom, args=(ws, chart_id, -100.0, anchor_key))
    c2.button("➖ Uzaklaştır", key=f"{key_prefix}-zout", on_click=zoom, args=(ws, chart_id, 100.0, anchor_key))
    c3.button("◀", key=f"{key_prefix}-left", on_click=pan, args=(ws, chart_id, 1), help="Önceki verilere kaydır")
    c4.button("▶", key=f"{key_prefix}-right", on_click=pan, args=(ws, chart_id, -1), help="Sonraki verilere kaydır")
    if payload.is_zoomed:
        c5.button("Tümünü Göster", key=f"{key_prefix}-reset", on_click=ws.viewport_for(chart_id).reset_zoom)
    st.slider("Yakınlaştırma merkezi (%)", 0, 100, 50, key=anchor_key)

    chart = build_line_chart(payload, height=ws.settings.chart_height)
    if chart is None:
        st.info(EMPTY_STATE_TEXT)
    else:
        st.altair_chart(chart, use_container_width=True)


def upload_surface(ws: ChartInstanceManager):
    uploader_key = f"uploader-{st.session_state.get('_uploader_gen', 0)}"
    with card("Dosya Yükle", "Excel (.xlsx, .xls) veya CSV"):
        uploaded = st.file_uploader(
            "Excel veya CSV dosyanızı buraya sürükleyin",
            type=list(ACCEPTED_EXTENSIONS),
            key=uploader_key,
            disabled=ws.is_loading,
        )
        if uploaded is not None:
            signature = (uploader_key, uploaded.name, uploaded.size)
            if st.session_state.get("_last_upload") != signature:
                st.session_state["_last_upload"] = signature
                with st.spinner("Dosya işleniyor..."):
                    try:
                        ws.upload(uploaded.name, uploaded.getvalue())
                    except UploadInProgress as exc:
                        st.warning(str(exc))
                    except IngestionError:
                        pass  # ws.error holds the text shown below
                if ws.draft is not None:
                    st.rerun()
        if ws.error:
            st.error(ws.error)


def pin_current(ws: ChartInstanceManager):
    try:
        ws.pin_draft()
    except WorkspaceError as exc:
        st.session_state["_pin_error"] = str(exc)
        return
    st.session_state["_uploader_gen"] = st.session_state.get("_uploader_gen", 0) + 1


# ---------- UI setup ----------
st.set_page_config(page_title="Excel Grafik Görselleştirici", layout="wide")
inject_base_styles()
st.title("Excel Grafik Görselleştirici")
st.caption("Fare tekerleği yerine düğmelerle yakınlaştırın, oklarla kaydırın; serileri kutucuklarla gizleyin.")

ws = get_workspace()

for chart_id in ws.chart_ids():
    with card("Grafik"):
        top_left, top_right = st.columns([5, 1])
        with top_left:
            series_toggles(ws, chart_id, chart_id)
        top_right.button("Grafiği Kaldır", key=f"{chart_id}-remove", on_click=ws.remove, args=(chart_id,))
        chart_display(ws, chart_id, chart_id)

if ws.draft is None:
    upload_surface(ws)
else:
    with card("Yeni Grafik", f"{ws.row_count} veri satırı"):
        draft_key = f"draft-{ws.draft_viewport.generation}"
        series_toggles(ws, None, draft_key)
        chart_display(ws, None, draft_key)
        st.button("Grafiği Ekle", key="pin", on_click=pin_current, args=(ws,), type="primary")
        if st.session_state.get("_pin_error"):
            st.error(st.session_state.pop("_pin_error"))

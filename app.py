import logging

import streamlit as st

from panels import get_panels, panel_frame, panel_value, Panel
from reading_stats import (
    LOG_FORMAT,
    LOG_LEVEL,
    READS_PATH,
    compute_metrics,
    load_records,
    normalize,
)

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

# ──────────────────────────────────────────────────────────────────────────────
# Page config FIRST
# ──────────────────────────────────────────────────────────────────────────────
st.set_page_config(page_title="Reading Dashboard", page_icon="📖", layout="wide")

# ──────────────────────────────────────────────────────────────────────────────
# CSS
# ──────────────────────────────────────────────────────────────────────────────
st.markdown(
    """
    <style>
    .stApp { background-color: #F4EDE4; }
    h1, h2, h3 { font-family: Georgia, serif; color: #5C4033; }
    .stat { font-size: 2.5rem; font-weight: 700; text-align: center; }
    .stat-caption { color: #5C4033; text-align: center; }
    </style>
    """,
    unsafe_allow_html=True,
)

# ──────────────────────────────────────────────────────────────────────────────
# Data (cached load + compute)
# ──────────────────────────────────────────────────────────────────────────────

@st.cache_data
def load_metrics(csv_path):
    books = normalize(load_records(csv_path))
    return compute_metrics(books)

metrics = load_metrics(str(READS_PATH))


# ──────────────────────────────────────────────────────────────────────────────
# Panel rendering
# ──────────────────────────────────────────────────────────────────────────────
def render_panel(panel: Panel, m):
    st.subheader(panel.title)
    if panel.kind == "stat":
        color = panel.colors[0] if panel.colors else "#5C4033"
        st.markdown(
            f'<div class="stat" style="color:{color}">{panel_value(panel, m)}</div>'
            f'<p class="stat-caption">{panel.caption or ""}</p>',
            unsafe_allow_html=True,
        )
        return

    df = panel_frame(panel, m)
    if df.empty:
        st.info("No books to show yet.")
        return
    y = [panel.labels.get(col, col) for col in panel.y]
    chart = st.line_chart if panel.kind == "line" else st.bar_chart
    chart(df, x=panel.x, y=y, color=panel.colors or None, height=300)
    if panel.caption:
        st.caption(panel.caption)


st.title("📖 Reading Dashboard")

panels = get_panels()
for start in range(0, len(panels), 3):
    for col, panel in zip(st.columns(3), panels[start:start + 3]):
        with col:
            render_panel(panel, metrics)

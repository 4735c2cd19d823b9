"""Exchange board dashboard - Streamlit entry point.

Run with: streamlit run ui/app.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure project root is on sys.path regardless of CWD
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st

# Must be first Streamlit command
st.set_page_config(
    page_title="Trade Clock | Exchange Board",
    page_icon="🕒",
    layout="wide",
)

from tradeclock.core.config import load_config
from tradeclock.core.errors import TradeClockError
from tradeclock.data.exchanges import ExchangeStore, resolve_exchanges_path, store_cache_key
from tradeclock.live.board import board_frame, take_snapshot

COLORS = {
    "open": "#10B981",       # Emerald
    "closed": "#EF4444",     # Red
    "warning": "#F59E0B",    # Amber
    "bg_card": "#1E293B",    # Slate-800
    "text_muted": "#94A3B8",
}

cfg = load_config(Path(_project_root) / "configs" / "base.yaml")

_exchanges_path = resolve_exchanges_path(cfg.exchanges_file, _project_root)


@st.cache_resource
def _load_store(path: str, mtime: float) -> ExchangeStore:
    # Keyed on mtime: a file rewritten by tc-clock loads a fresh store
    return ExchangeStore(path, strict=cfg.strict_schedules)


def _get_store() -> ExchangeStore:
    return _load_store(*store_cache_key(_exchanges_path))


def _card(row) -> str:
    if row.error:
        color, status, local = COLORS["warning"], f"⚠ {row.error}", "--:--"
    else:
        color = COLORS["open"] if row.is_open else COLORS["closed"]
        status, local = row.status, f"{row.weekday[:3]} {row.local_time}"
    return f"""
        <div style="background: {COLORS['bg_card']}; border-left: 4px solid {color};
                    border-radius: 8px; padding: 12px 16px; margin-bottom: 12px;">
            <div style="font-size: 1.1rem; font-weight: 700;">{row.flag} {row.name}</div>
            <div style="color: {COLORS['text_muted']}; font-size: 0.8rem;">
                {row.city}, {row.country} · {row.hours}
            </div>
            <div style="font-size: 1.6rem; font-weight: 800; margin-top: 6px;">{local}</div>
            <div style="color: {color}; font-weight: 600;">{status}</div>
        </div>
    """


st.markdown("## 🕒 Exchange Board")

with st.sidebar:
    show_all = st.toggle("Show deselected exchanges", value=cfg.board.show_all)


@st.fragment(run_every=cfg.ticker.refresh_seconds)
def render_board() -> None:
    try:
        store = _get_store()
    except TradeClockError as e:
        st.error(f"Cannot load exchanges: {e}")
        return
    exchanges, snapshot = take_snapshot(store, selected_only=not show_all)
    frame = board_frame(exchanges, snapshot)

    c1, c2, c3 = st.columns(3)
    c1.metric("Exchanges", len(frame))
    c2.metric("Open now", int(frame["is_open"].sum()))
    c3.metric("Unavailable", len(snapshot.failures))

    cols = st.columns(3)
    for i, row in enumerate(frame.itertuples(index=False)):
        with cols[i % 3]:
            st.markdown(_card(row), unsafe_allow_html=True)

    st.caption(f"Updated {snapshot.instant:%Y-%m-%d %H:%M UTC}")


render_board()

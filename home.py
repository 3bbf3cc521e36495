from __future__ import annotations

import streamlit as st

from jewelcore.config import get_settings

st.set_page_config(page_title="Jewel Stock", page_icon="💍", layout="wide")

st.title("💍 Jewel Stock — Reconciliation & Pricing")
st.caption("Barcoded stock, sold/available status, and bill pricing computed from the shop's document store.")

settings = get_settings()

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Store:** `{settings.api_base_url}`")
    st.write(f"**Page size:** {settings.page_size}")
    st.write(f"**Data directory:** `{settings.data_dir}`")

st.info(
    "Use the left sidebar navigation. Check the store address in **⚙️ Settings**, then open **📦 Stock Report** "
    "to see what is available, or **🧾 Billing** to price a sale.",
    icon="ℹ️",
)

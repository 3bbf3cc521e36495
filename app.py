from __future__ import annotations

import streamlit as st

st.set_page_config(page_title="Jewel Stock", page_icon="💍", layout="wide")

pages = [
    st.Page("home.py", title="Home", icon="🏠"),
    st.Page("pages/1_🏷️_Barcodes.py", title="Barcodes", icon="🏷️"),
    st.Page("pages/2_📦_Stock_Report.py", title="Stock Report", icon="📦"),
    st.Page("pages/3_🧾_Billing.py", title="Billing", icon="🧾"),
    st.Page("pages/4_💹_Rates_&_Repricing.py", title="Rates & Repricing", icon="💹"),
    st.Page("pages/5_⚙️_Settings.py", title="Settings", icon="⚙️"),
]

st.navigation(pages).run()

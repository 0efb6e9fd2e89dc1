# streamlit: name = 🏠 Home
# streamlit: icon = 🏠

import os

import requests
import streamlit as st
from dotenv import load_dotenv

load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env"))
API_URL = os.getenv("BACKEND_API_URL", "http://localhost:8000")

st.set_page_config(
    page_title="Sveriges jobbsiffror",
    layout="wide",
)

st.title("Sveriges jobbsiffror")

st.markdown("""
Monthly job vacancy statistics for Sweden, based on the historical job
ads published by Arbetsförmedlingen.

Pick a county and/or an occupation group to see how demand has moved
month by month:
""")

# --- Page links (Streamlit 1.32+ only) ---
st.page_link("pages/1_Vacancies.py", label="Vacancies", icon="📈")
st.page_link("pages/2_About.py", label="About / Info", icon="ℹ️")

st.markdown("---")

# --- Data freshness ---
try:
    resp = requests.get(f"{API_URL}/cutoff", timeout=30)
    if resp.status_code == 200:
        cutoff = resp.json().get("cutoff_month")
        if cutoff:
            st.caption(f"Data available up to and including {cutoff}.")
        else:
            st.caption("Latest available month is unknown right now; showing everything the source returns.")
except requests.RequestException as e:
    st.caption(f"Backend not reachable: {e}")

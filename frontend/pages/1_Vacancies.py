# streamlit: name = 📈 Vacancies
# streamlit: icon = 📈

import pandas as pd
import streamlit as st
import requests
import os
from datetime import date
from dotenv import load_dotenv
import altair as alt

ALL_LABEL = "Hela Sverige"
ALL_OCCUPATIONS_LABEL = "Alla yrken"
LOAD_ERROR = "Kunde inte ladda data. Försök igen senare."

load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env"))
API_URL = os.getenv("BACKEND_API_URL", "http://localhost:8000")

if "dashboard" not in st.session_state:
    st.session_state["dashboard"] = None


@st.cache_data(ttl=24 * 3600)
def load_taxonomy(kind):
    """Regions/occupations as (name, slug) pairs; the lists are static on the backend."""
    resp = requests.get(f"{API_URL}/taxonomy/{kind}", timeout=30)
    resp.raise_for_status()
    return [(e["name"], e["slug"]) for e in resp.json()]


def month_options(count=36):
    today = date.today()
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def load_dashboard(region, occupation, from_month, to_month):
    """Call /vacancies for the chosen filters and keep the payload in session state."""
    path = "/".join(s for s in (region, occupation) if s)
    with st.spinner("Loading..."):
        try:
            resp = requests.get(
                f"{API_URL}/vacancies/{path}",
                params={"fromMonth": from_month, "toMonth": to_month},
                timeout=120,
            )
            if resp.status_code != 200:
                st.session_state["dashboard"] = None
                st.error(LOAD_ERROR)
                return
            st.session_state["dashboard"] = resp.json()
        except Exception as e:
            st.session_state["dashboard"] = None
            st.error(f"API error: {e}")


st.title("Lediga jobb")
st.markdown("#### Monthly vacancies by county and occupation group")

try:
    regions = load_taxonomy("regions")
    occupations = load_taxonomy("occupations")
except Exception as e:
    st.error(f"API error: {e}")
    st.stop()

col1, col2 = st.columns(2)
with col1:
    region_label = st.selectbox("County", [ALL_LABEL] + [name for name, _ in regions])
with col2:
    occupation_label = st.selectbox("Occupation group", [ALL_OCCUPATIONS_LABEL] + [name for name, _ in occupations])

months = month_options()
from_month, to_month = st.select_slider(
    "Months",
    options=months,
    value=(months[-12], months[-1]),
)

if st.button("Show"):
    region = dict(regions).get(region_label)
    occupation = dict(occupations).get(occupation_label)
    load_dashboard(region, occupation, from_month, to_month)

data = st.session_state["dashboard"]
if data is not None:
    st.subheader(data["title"])

    dropped = data["filter"].get("dropped_months") or []
    if data["filter"].get("was_clipped"):
        st.info(f"Not yet published: {', '.join(dropped)}. The range ends at the latest available month.")

    # --- Summary metrics ---
    summary = data["summary"]
    m1, m2, m3 = st.columns(3)
    m1.metric("Total vacancies", f"{summary['total_vacancies']:,}".replace(",", " "))
    m2.metric("Change vs previous month", f"{summary['month_over_month_change']} %")
    m3.metric("Most active county", summary["most_active_region"] or "-")

    # --- Time series ---
    df = pd.DataFrame(data["area_chart"])
    if df.empty:
        st.info("No months with published data in the selected range.")
    else:
        chart = alt.Chart(df).mark_line(point=True).encode(
            x=alt.X(
                "display_month:N",
                title="Month",
                sort=list(df["display_month"]),
                axis=alt.Axis(labelAngle=45)  # Rotate X-axis labels
            ),
            y=alt.Y("total:Q", title="Number of Vacancies"),
            tooltip=["month", "total"]
        ).properties(
            width='container',
            height=400
        )
        st.altair_chart(chart, use_container_width=True)

    # --- Counties ---
    df_map = pd.DataFrame(data["map"])
    if not df_map.empty and df_map["job_count"].sum() > 0:
        st.markdown("### Vacancies per county")
        bars = alt.Chart(df_map).mark_bar().encode(
            x=alt.X("job_count:Q", title="Number of Vacancies"),
            y=alt.Y("region_name:N", title=None, sort="-x"),
            color=alt.Color("intensity:Q", scale=alt.Scale(scheme="blues"), legend=None),
            tooltip=["region_name", "job_count"]
        ).properties(
            width='container',
            height=500
        )
        st.altair_chart(bars, use_container_width=True)

    # --- Top categories ---
    df_pie = pd.DataFrame(data["pie_chart"])
    if not df_pie.empty:
        st.markdown("### Top 5")
        pie = alt.Chart(df_pie).mark_arc().encode(
            theta="count:Q",
            color=alt.Color("display_name:N", scale=alt.Scale(range=list(df_pie["fill"])), title=None),
            tooltip=["display_name", "count"]
        )
        st.altair_chart(pie, use_container_width=True)

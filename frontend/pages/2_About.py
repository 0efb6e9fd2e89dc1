# streamlit: name = ℹ️ About / Info
# streamlit: icon = ℹ️

import streamlit as st


st.title("About")

st.markdown("""
**Sveriges jobbsiffror** shows how many job ads were published each month in
Sweden, broken down by county (län) and occupation group (SSYK 2012). The numbers
come from the historical ads API of the Swedish Public Employment Service
([Arbetsförmedlingen](https://arbetsformedlingen.se/)), published through
[JobTech Dev](https://jobtechdev.se/).
""")

st.header("How the numbers work")

st.markdown("""
- Each month is one count of ads published between the first and the last day of that month.
- The historical data lags behind the calendar. Months that are not published yet are
  detected automatically and left out of every chart, instead of showing up as a sudden drop to zero.
- If a single month could not be fetched, it is shown as zero and the rest of the chart is still drawn.
- Counts are cached for a while, so very recent corrections at the source can take some time to show up.
""")

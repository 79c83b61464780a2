"""
Mandi Pulse — Onion & Potato Price Dashboard.

A Streamlit + Plotly front end over the same PriceQueries the API uses.

Pages:
    1. Snapshot      — latest prices by grade for the chosen commodity
    2. Monthly       — monthly average modal price per grade + MoM moves
    3. Records       — all-time highs/lows, biggest daily moves, streaks
    4. Seasonal      — typical price by calendar month
    5. Year-over-Year — same month, different years
    6. Forecast      — 30-point trend forecast + onion/potato correlation

Run with:  streamlit run app/dashboard.py
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import streamlit as st
import plotly.graph_objects as go
import pandas as pd

from config import MONTH_NAMES, SUPPORTED_COMMODITIES, setup_logging

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit command)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Mandi Pulse",
    page_icon="🧅",
    layout="wide",
)

# ---------------------------------------------------------------------------
# Colour theme
# ---------------------------------------------------------------------------
COLORS = {
    "bullish": "#2DC653",
    "bearish": "#E63946",
    "neutral": "#6C757D",
    "onion": "#9B2335",
    "potato": "#C8A165",
    "band": "rgba(70,130,180,0.2)",
}


# ---------------------------------------------------------------------------
# Load the data once per server process
# ---------------------------------------------------------------------------
@st.cache_resource
def load_queries():
    from main import build_queries
    setup_logging()
    return build_queries()


def _call(fn, *args):
    """Run a query, returning {"error": ...} for errors the page should show."""
    from analysis.errors import QueryError
    try:
        return fn(*args)
    except QueryError as e:
        return {"error": f"{e.error}: {e.message}"}


def _check_error(data, page_name):
    """Check if a query returned an error and display it. Returns True if error."""
    if isinstance(data, dict) and "error" in data:
        st.error(f"{page_name}: {data['error']}")
        return True
    return False


# ---------------------------------------------------------------------------
# Sidebar navigation
# ---------------------------------------------------------------------------
PAGES = ["Snapshot", "Monthly", "Records", "Seasonal", "Year-over-Year", "Forecast"]

queries = load_queries()

st.sidebar.markdown("## Mandi Pulse")
page = st.sidebar.radio("Navigate", PAGES, label_visibility="collapsed")
commodity = st.sidebar.selectbox("Commodity", SUPPORTED_COMMODITIES)
grade = st.sidebar.text_input("Grade (blank = all)", "") or None

st.sidebar.divider()
st.sidebar.caption(f"{len(queries.store):,} records loaded")
if queries.store.dropped:
    st.sidebar.caption(f"{queries.store.dropped:,} malformed records dropped")


# ---------------------------------------------------------------------------
# Page 1: Snapshot
# ---------------------------------------------------------------------------
def page_snapshot():
    st.title(f"{commodity.title()} — Latest Prices")
    data = _call(queries.latest_prices, commodity)
    if _check_error(data, "Snapshot"):
        return

    st.caption(f"As of {data['latestDate']}")
    cols = st.columns(max(len(data["data"]), 1))
    for col, (grade_key, prices) in zip(cols, data["data"].items()):
        col.metric(f"{grade_key} modal", f"₹{prices['modalPrice']:,.0f}")
        col.caption(f"Min ₹{prices['minPrice']:,.0f} · Max ₹{prices['maxPrice']:,.0f}")
        if prices["variety"]:
            col.caption(prices["variety"])


# ---------------------------------------------------------------------------
# Page 2: Monthly averages
# ---------------------------------------------------------------------------
def page_monthly():
    st.title(f"{commodity.title()} — Monthly Averages")
    data = _call(queries.monthly_averages, commodity, None, None, grade)
    if _check_error(data, "Monthly"):
        return

    rows = []
    for month in data["monthlyAverages"]:
        for grade_key, stats in month["grades"].items():
            change = month["changes"].get(grade_key, {})
            rows.append({
                "month": month["month"],
                "grade": grade_key,
                "average": stats["averageModalPrice"],
                "min": stats["averageMinPrice"],
                "max": stats["averageMaxPrice"],
                "mom_pct": change.get("percentChange"),
            })
    df = pd.DataFrame(rows)

    fig = go.Figure()
    for grade_key, group in df.groupby("grade"):
        fig.add_trace(go.Scatter(x=group["month"], y=group["average"],
                                 mode="lines+markers", name=grade_key))
    fig.update_layout(height=400, yaxis_title="₹ / quintal", xaxis_title="Month")
    st.plotly_chart(fig, use_container_width=True)

    st.dataframe(df, use_container_width=True, hide_index=True)


# ---------------------------------------------------------------------------
# Page 3: Records
# ---------------------------------------------------------------------------
def page_records():
    st.title(f"{commodity.title()} — Records & Streaks")
    data = _call(queries.price_records, commodity, None, None, grade)
    if _check_error(data, "Records"):
        return

    for grade_key, block in data["records"].items():
        st.subheader(grade_key)
        records = block["allTimeRecords"]
        stats = block["statistics"]

        cols = st.columns(4)
        cols[0].metric("Highest modal", f"₹{records['highestModal']['price']:,.0f}",
                       records["highestModal"]["date"], delta_color="off")
        cols[1].metric("Lowest modal", f"₹{records['lowestModal']['price']:,.0f}",
                       records["lowestModal"]["date"], delta_color="off")
        cols[2].metric("Average", f"₹{stats['averagePrice']:,.0f}")
        cols[3].metric("Volatility", f"₹{stats['volatility']:,.0f}")

        left, right = st.columns(2)
        left.markdown("**Largest daily increases**")
        left.dataframe(pd.DataFrame(block["dailyChanges"]["largestIncreases"]), hide_index=True)
        right.markdown("**Largest daily decreases**")
        right.dataframe(pd.DataFrame(block["dailyChanges"]["largestDecreases"]), hide_index=True)

        periods = block["sustainedPeriods"]
        left.markdown("**Sustained high periods**")
        left.dataframe(pd.DataFrame(periods["highPeriods"]), hide_index=True)
        right.markdown("**Sustained low periods**")
        right.dataframe(pd.DataFrame(periods["lowPeriods"]), hide_index=True)
        st.divider()


# ---------------------------------------------------------------------------
# Page 4: Seasonal
# ---------------------------------------------------------------------------
def page_seasonal():
    st.title(f"{commodity.title()} — Seasonal Patterns")
    data = _call(queries.seasonal_patterns, commodity, grade)
    if _check_error(data, "Seasonal"):
        return

    monthly = pd.DataFrame(data["seasonalPatterns"])
    labels = [MONTH_NAMES[m - 1][:3] for m in monthly["month"]]

    fig = go.Figure()
    # Min/max range as error bars
    fig.add_trace(
        go.Bar(
            x=labels,
            y=monthly["averagePrice"],
            name="Avg modal",
            marker_color=COLORS[commodity],
            error_y=dict(
                type="data",
                symmetric=False,
                array=monthly["maxPrice"] - monthly["averagePrice"],
                arrayminus=monthly["averagePrice"] - monthly["minPrice"],
                color=COLORS["neutral"],
            ),
        )
    )
    fig.update_layout(height=400, yaxis_title="₹ / quintal", xaxis_title="Month")
    st.plotly_chart(fig, use_container_width=True)

    insights = data["insights"]
    cols = st.columns(4)
    cols[0].metric("Cheapest", ", ".join(m["monthName"][:3] for m in insights["cheapestMonths"]))
    cols[1].metric("Dearest", ", ".join(m["monthName"][:3] for m in insights["expensiveMonths"]))
    cols[2].metric("Most volatile", insights["mostVolatileMonth"]["monthName"])
    cols[3].metric("Most stable", insights["mostStableMonth"]["monthName"])
    st.caption(f"{data['dateRange']['start']} to {data['dateRange']['end']}")


# ---------------------------------------------------------------------------
# Page 5: Year-over-year
# ---------------------------------------------------------------------------
def page_year_over_year():
    st.title(f"{commodity.title()} — Year-over-Year")
    data = _call(queries.year_over_year, commodity, grade)
    if _check_error(data, "Year-over-Year"):
        return

    monthly = pd.DataFrame(data["monthlyAverages"])
    fig = go.Figure()
    for year, group in monthly.groupby("year"):
        fig.add_trace(go.Scatter(
            x=[MONTH_NAMES[m - 1][:3] for m in group["month"]],
            y=group["averagePrice"],
            mode="lines+markers",
            name=str(year),
        ))
    fig.update_layout(height=400, yaxis_title="₹ / quintal", xaxis_title="Month")
    st.plotly_chart(fig, use_container_width=True)

    insights = data["insights"]
    left, right = st.columns(2)
    left.markdown("**Largest % increases**")
    left.dataframe(pd.DataFrame(insights["largestPercentIncreases"]), hide_index=True)
    right.markdown("**Largest % decreases**")
    right.dataframe(pd.DataFrame(insights["largestPercentDecreases"]), hide_index=True)


# ---------------------------------------------------------------------------
# Page 6: Forecast & correlation
# ---------------------------------------------------------------------------
def page_forecast():
    st.title("Forecast & Correlation")
    data = queries.advanced_analytics(None, None, grade)
    block = data[f"{commodity}Analytics"]

    if not block:
        st.warning(f"No {commodity} data in the last two years.")
        return

    cols = st.columns(3)
    cols[0].metric("Trend", block["trendDirection"])
    cols[1].metric("Volatility", f"₹{block['volatility']:,.0f}")
    cols[2].metric("Recent volatility", f"₹{block['recentVolatility']:,.0f}")

    predictions = block["predictions"]
    if predictions:
        band = predictions["volatilityRange"]
        steps = list(range(1, len(predictions["next30Days"]) + 1))
        fig = go.Figure()
        fig.add_trace(go.Scatter(x=steps, y=[band["upper"]] * len(steps),
                                 line=dict(width=0), showlegend=False))
        fig.add_trace(go.Scatter(x=steps, y=[band["lower"]] * len(steps),
                                 fill="tonexty", fillcolor=COLORS["band"],
                                 line=dict(width=0), name="Volatility band"))
        fig.add_trace(go.Scatter(x=steps, y=predictions["next30Days"],
                                 mode="lines", name="Forecast",
                                 line=dict(color=COLORS[commodity])))
        fig.update_layout(height=350, yaxis_title="₹ / quintal", xaxis_title="Records ahead")
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("Not enough recent data for a trend forecast.")

    correlation = data["crossCommodityCorrelation"]
    st.subheader("Onion vs Potato")
    if correlation:
        cols = st.columns(3)
        cols[0].metric("Coefficient", f"{correlation['coefficient']:+.2f}")
        cols[1].metric("Strength", f"{correlation['strength']} {correlation['direction']}")
        cols[2].metric("Common dates", correlation["dataPoints"])
        st.caption(correlation["interpretation"])
    else:
        st.info("Not enough overlapping dates to correlate the two markets.")


PAGE_FUNCS = {
    "Snapshot": page_snapshot,
    "Monthly": page_monthly,
    "Records": page_records,
    "Seasonal": page_seasonal,
    "Year-over-Year": page_year_over_year,
    "Forecast": page_forecast,
}

PAGE_FUNCS[page]()

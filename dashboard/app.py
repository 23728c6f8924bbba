"""
Streamlit Dashboard for the Energy & Disaster Stress Platform

Interactive map and tables of regional stress scores and forecasts.
"""

import streamlit as st
import pandas as pd
import plotly.express as px
from datetime import date
import os

from stress_connectors import LiveDataSource, MockDataSource, TTLCache
from stress_connectors.nightlight_loader import load_county_energy
from stress_scoring import RegionStressAggregator, StressScorer, forecast_series, summarize
from stress_scoring.config import STRESS_LEVELS
from stress_scoring.layers import LAYERS, apply_layer, choropleth_layers, toggle_layer
from stress_scoring.nightlight import score_counties
from stress_scoring.tiering import legend_entries

# Page configuration
st.set_page_config(
    page_title="Energy & Disaster Stress Platform",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Initialize data sources
@st.cache_resource
def get_aggregators():
    ttl = float(os.getenv("STRESS_CACHE_TTL_SECONDS", 24 * 60 * 60))
    scorer = StressScorer()
    return {
        "mock": RegionStressAggregator(MockDataSource(), scorer),
        "live": RegionStressAggregator(LiveDataSource(cache=TTLCache(ttl_seconds=ttl)), scorer),
    }

aggregators = get_aggregators()

# Title and description
st.title("Energy & Disaster Stress Intelligence Platform")
st.markdown("**Regional disaster, energy and migration stress**")

# Sidebar
st.sidebar.header("Configuration")

st.sidebar.subheader("🗂️ Data")
default_source = os.getenv("STRESS_DATA_SOURCE", "mock").lower()
source_name = st.sidebar.radio(
    "Data Source",
    ["mock", "live"],
    index=1 if default_source == "live" else 0,
    format_func=lambda name: "Synthetic (mock)" if name == "mock" else "Live APIs"
)
state = st.sidebar.selectbox("State", ["All"] + MockDataSource.STATES)
year = st.sidebar.selectbox("Year", ["Latest"] + list(range(2024, 2019, -1)))

st.sidebar.subheader("🗺️ Map Layers")
if "enabled_layers" not in st.session_state:
    st.session_state.enabled_layers = {lid: layer.enabled for lid, layer in LAYERS.items()}

choropleths = choropleth_layers()
active = next(
    (i for i, layer in enumerate(choropleths) if st.session_state.enabled_layers.get(layer.id)),
    0
)
selected = st.sidebar.radio(
    "Choropleth",
    choropleths,
    index=active,
    format_func=lambda layer: layer.name
)
st.session_state.enabled_layers = toggle_layer(st.session_state.enabled_layers, selected.id, True)

show_top = st.sidebar.checkbox(
    LAYERS["top-stressed"].name,
    value=st.session_state.enabled_layers["top-stressed"]
)
st.session_state.enabled_layers = toggle_layer(st.session_state.enabled_layers, "top-stressed", show_top)

months_ahead = st.sidebar.slider("Forecast Horizon (months)", min_value=0, max_value=24, value=0)
forecast_date = (pd.Timestamp(date.today()).to_period("M").to_timestamp() + pd.DateOffset(months=months_ahead)).date()

# Analysis button
if st.sidebar.button("Score Regions", type="primary"):
    with st.spinner("Scoring regions..."):
        metrics = aggregators[source_name].build_metrics_frame(
            state=None if state == "All" else state,
            year=None if year == "Latest" else int(year)
        )
        st.session_state.metrics = metrics
        st.session_state.analysis_complete = True

# Main content
if st.session_state.get("analysis_complete", False):
    metrics = st.session_state.metrics
    summary = summarize(metrics)

    if summary is None:
        st.warning("No regions returned by the selected data source.")
        st.stop()

    # Summary cards
    st.subheader("Stress Summary")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Regions Scored", summary["total_areas"])
    col2.metric("Average Stress", f"{summary['average_stress_score']:.1f}/100")
    col3.metric("Top Stressed", summary["top_stressed_areas"])
    col4.metric("Critical", summary["stress_levels"]["Critical"])

    incomplete = int((metrics["missing_sources"].str.len() > 0).sum())
    if incomplete:
        st.info(f"ℹ️ {incomplete} regions are missing at least one data source; missing sub-scores count as 0.")

    st.markdown("---")

    tab1, tab2, tab3, tab4, tab5 = st.tabs([
        "🗺️ Map", "📈 Overview", "⚠️ Top Stressed", "🔮 Forecast", "🌃 Counties"
    ])

    with tab1:
        layered = apply_layer(metrics, selected.id, forecast_date)
        mapped = layered.dropna(subset=["latitude", "longitude"])

        if mapped.empty:
            st.info("No coordinates available for the selected regions.")
        else:
            colors = {color: color for _, color in legend_entries()}
            fig = px.scatter_geo(
                mapped,
                lat="latitude",
                lon="longitude",
                color="fill_color",
                color_discrete_map=colors,
                hover_name="region_key",
                hover_data={"layer_value": ":.1f", "stress_level": True, "fill_color": False},
                scope="usa",
                title=f"{selected.name} ({forecast_date:%b %Y})" if selected.id == "forecast-pressure" else selected.name
            )
            fig.update_layout(showlegend=False)

            if show_top:
                flagged = mapped[mapped["is_top_stressed"]]
                fig.add_scattergeo(
                    lat=flagged["latitude"],
                    lon=flagged["longitude"],
                    text=flagged["region_key"],
                    mode="markers",
                    marker=dict(symbol="triangle-up", size=12, color=LAYERS["top-stressed"].color),
                    name=LAYERS["top-stressed"].name
                )
            st.plotly_chart(fig, use_container_width=True)

        legend_cols = st.columns(len(legend_entries()))
        for col, (label, color) in zip(legend_cols, legend_entries()):
            col.markdown(f"<span style='color:{color}'>■</span> {label}", unsafe_allow_html=True)

    with tab2:
        st.subheader("Stress Level Distribution")
        levels = pd.DataFrame({
            "level": list(STRESS_LEVELS),
            "regions": [summary["stress_levels"][level] for level in STRESS_LEVELS]
        })
        fig = px.bar(
            levels,
            x="level",
            y="regions",
            labels={"level": "Stress Level", "regions": "Regions"},
            color="regions",
            color_continuous_scale="Reds"
        )
        fig.update_layout(showlegend=False)
        st.plotly_chart(fig, use_container_width=True)

        fig = px.scatter(
            metrics,
            x="energy_stress_score",
            y="disaster_stress_score",
            color="stress_level",
            hover_name="region_key",
            title="Disaster vs Energy Stress",
            labels={
                "energy_stress_score": "Energy Stress",
                "disaster_stress_score": "Disaster Stress",
                "stress_level": "Stress Level"
            }
        )
        st.plotly_chart(fig, use_container_width=True)

        col1, col2, col3 = st.columns(3)
        col1.metric("Disaster Declarations", summary.get("total_disasters", 0))
        col2.metric("Storm Events", summary.get("total_storm_events", 0))
        col3.metric("Avg Energy Burden", f"{summary.get('average_energy_burden', 0.0):.1f}%")

    with tab3:
        st.subheader("Top Stressed Regions")
        top = metrics[metrics["is_top_stressed"]]

        if not top.empty:
            st.dataframe(
                top[[
                    "region_key", "overall_stress_score", "stress_level",
                    "disaster_stress_score", "energy_stress_score", "migration_stress_score"
                ]].head(50),
                use_container_width=True
            )
        else:
            st.success("No regions above the top-stressed threshold.")

    with tab4:
        st.subheader("Stress Forecast")
        region_key = st.selectbox("Region", metrics["region_key"].tolist())
        row = metrics.set_index("region_key").loc[region_key]

        series = forecast_series(
            row["overall_stress_score"],
            forecast_date,
            periods=12,
            disaster_count=int(row.get("disaster_declarations_count", 0))
        )
        fig = px.line(
            series,
            x="date",
            y="forecast_score",
            markers=True,
            title=f"12-Month Outlook for {region_key}",
            labels={"date": "Month", "forecast_score": "Forecast Score (0-100)"}
        )
        fig.update_yaxes(range=[0, 100])
        st.plotly_chart(fig, use_container_width=True)
        st.dataframe(series, use_container_width=True)

    with tab5:
        st.subheader("County Nightlight Stress")
        county_path = os.getenv("STRESS_COUNTY_ENERGY_PATH", "data/county_energy.geojson")

        if not os.path.exists(county_path):
            st.info(f"Set STRESS_COUNTY_ENERGY_PATH to a county energy GeoJSON extract (looked for {county_path}).")
        else:
            counties = load_county_energy(county_path)
            if state != "All":
                counties = counties[counties["state"] == state]
            scored = score_counties(
                counties,
                aggregators[source_name].source.get_disasters(state=None if state == "All" else state)
            )

            if scored.empty:
                st.warning("No counties in the extract for this state.")
            else:
                col1, col2 = st.columns(2)
                col1.metric("Counties Scored", len(scored))
                col2.metric("Top Stressed", int(scored["is_top_stressed"].sum()))

                fig = px.scatter_geo(
                    scored.dropna(subset=["latitude", "longitude"]),
                    lat="latitude",
                    lon="longitude",
                    color="overall_stress_score",
                    color_continuous_scale="Reds",
                    range_color=[0, 100],
                    hover_name="name",
                    hover_data={"fips": True, "stress_level": True, "disaster_count": True},
                    scope="usa",
                    title="County Composite Stress"
                )
                st.plotly_chart(fig, use_container_width=True)

                st.dataframe(
                    scored[[
                        "fips", "name", "state", "overall_stress_score", "stress_level",
                        "energy_stress_score", "disaster_stress_score", "disaster_count"
                    ]].head(50),
                    use_container_width=True
                )

else:
    # Instructions
    st.info("👈 Pick a data source and state in the sidebar and click **Score Regions** to begin.")

    st.markdown("""
    ### About This Platform

    This platform scores regional stress by combining:

    - **FEMA**: Disaster declarations, weighted by recency and incident diversity
    - **EIA**: Electricity demand peaks, together with household energy burden
    - **Census**: Net migration relative to population

    The composite score weights disaster and energy stress at 40% each and migration
    at 20%. Regions scoring 70 or more are flagged as top stressed.

    ### How to Use

    1. Choose mock or live data and an optional state/year
    2. Pick a map layer and forecast horizon
    3. Click "Score Regions"
    4. Review the map, the distribution and the per-region forecast
    """)

# Footer
st.sidebar.markdown("---")
st.sidebar.markdown("""
**Energy & Disaster Stress Platform**
Version 1.0.0
Data Sources: FEMA, EIA, Census
""")

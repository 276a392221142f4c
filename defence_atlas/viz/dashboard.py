"""
defence_atlas/viz/dashboard.py — Streamlit supply network dashboard.

Single page mirroring the dashboard's network panel:

    - search box (name or ticker) selecting the company to centre on
    - sidebar sliders for upstream / downstream levels (1–5)
    - "this company only" toggle (0/0 filter)
    - clear filter to return to the full network
    - Plotly graph plus node and link tables for the current view

The full network is loaded once per session and kept as the baseline; every
interaction re-filters that baseline, never the previous filtered view.

Usage:
    streamlit run defence_atlas/viz/dashboard.py
"""

import logging
from typing import Optional

import pandas as pd
import streamlit as st

from defence_atlas.config import DEFAULT_CONFIG, DefenceAtlasConfig
from defence_atlas.graph.builder import load_seed_network
from defence_atlas.graph.network import Network, get_node
from defence_atlas.graph.network_filter import filter_network_by_node
from defence_atlas.graph.search import search_nodes
from defence_atlas.viz.plotly_graph import build_plotly_figure

logger = logging.getLogger(__name__)


def current_view(
    network: Network,
    selected_id: Optional[str],
    upstream_levels: int,
    downstream_levels: int,
    company_only: bool = False,
) -> Network:
    """Return the network the dashboard should draw for the current controls."""
    if not selected_id:
        return network
    if company_only:
        return filter_network_by_node(network, selected_id, 0, 0)
    return filter_network_by_node(network, selected_id, upstream_levels, downstream_levels)


def view_tables(network: Network) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Node and link tables for the current view, with company names on links."""
    names = {n.id: n.name for n in network.nodes}
    df_nodes = pd.DataFrame(
        [
            {
                "Company": n.name,
                "Ticker": n.ticker,
                "Country": n.country,
                "Type": n.type,
                "Tier": n.level,
                "Products": n.products,
            }
            for n in network.nodes
        ],
        columns=["Company", "Ticker", "Country", "Type", "Tier", "Products"],
    )
    df_links = pd.DataFrame(
        [
            {
                "Supplier": names.get(l.source, l.source),
                "Customer": names.get(l.target, l.target),
                "Strength": l.value,
                "Description": l.description,
            }
            for l in network.links
        ],
        columns=["Supplier", "Customer", "Strength", "Description"],
    )
    return df_nodes, df_links


def run_dashboard(
    network: Optional[Network] = None,
    config: DefenceAtlasConfig = DEFAULT_CONFIG,
) -> None:
    """
    Launch the Defence Atlas Streamlit dashboard.

    Args:
        network: Baseline network. Defaults to the bundled seed network.
        config:  DefenceAtlasConfig (slider range and defaults).
    """
    st.set_page_config(page_title="Defence Industry Dashboard", layout="wide")
    st.title("Defence Industry Dashboard")
    st.caption("European defence companies and their supply-chain dependencies")

    if "network" not in st.session_state:
        st.session_state["network"] = network or load_seed_network(config)
        st.session_state["selected_id"] = None
    baseline: Network = st.session_state["network"]

    # ── Filter settings ───────────────────────────────────────────────────────
    st.sidebar.header("Network Filter Settings")
    upstream = st.sidebar.slider(
        "Upstream levels (who the company provides to)",
        config.ui_min_levels,
        config.ui_max_levels,
        config.default_upstream_levels,
    )
    downstream = st.sidebar.slider(
        "Downstream levels (who provides to the company)",
        config.ui_min_levels,
        config.ui_max_levels,
        config.default_downstream_levels,
    )
    company_only = st.sidebar.checkbox("Show this company only", value=False)

    # ── Search ────────────────────────────────────────────────────────────────
    query = st.text_input("Search companies by name or ticker")
    matches = search_nodes(baseline, query, limit=config.search_result_limit)
    if matches:
        labels = {f"{n.name} ({n.ticker})": n.id for n in matches}
        choice = st.selectbox("Matches", list(labels))
        if st.button("Filter network"):
            st.session_state["selected_id"] = labels[choice]
    elif query:
        st.info("No companies match that search.")

    selected_id = st.session_state["selected_id"]
    if selected_id and st.button("Clear filter and show full network"):
        st.session_state["selected_id"] = None
        selected_id = None

    view = current_view(baseline, selected_id, upstream, downstream, company_only)

    # ── Graph + tables ────────────────────────────────────────────────────────
    selected = get_node(baseline, selected_id) if selected_id else None
    if selected is not None:
        st.subheader(f"Supply network around {selected.name}")

    col1, col2 = st.columns(2)
    col1.metric("Companies shown", len(view.nodes))
    col2.metric("Dependencies shown", len(view.links))

    st.plotly_chart(build_plotly_figure(view, highlighted_node_id=selected_id), use_container_width=True)

    df_nodes, df_links = view_tables(view)
    st.subheader("Companies")
    st.dataframe(df_nodes, use_container_width=True)
    st.subheader("Dependencies")
    st.dataframe(df_links, use_container_width=True)


if __name__ == "__main__":
    run_dashboard()

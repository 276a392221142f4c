"""
defence_atlas.viz — Interactive visualization components.

Modules:
    plotly_graph — Force-directed Plotly figure of a (filtered) supply network.
    dashboard    — Streamlit page: search, level sliders, graph and tables.
"""

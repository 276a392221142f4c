"""
defence_atlas/viz/plotly_graph.py — Interactive Plotly force-directed graph.

Renders a (possibly filtered) supply network for the dashboard.

Visual encoding:
    - Node colour: red = producer, blue = supplier, green = material provider,
                   grey = any other type
    - Node size:   (4 - level) * 5, floored at 5; highlighted node 30% larger
    - Highlight:   orange border on the selected company
    - Edge width:  proportional to dependency strength (value 1–10)
    - Hover:       name, ticker, country, products; link description + strength
"""

import logging
from math import sqrt
from typing import Optional

import networkx as nx
import plotly.graph_objects as go

from defence_atlas.graph.network import Network, network_to_digraph

logger = logging.getLogger(__name__)

_NODE_COLORS_BY_TYPE = {
    "producer": "#ff5252",
    "supplier": "#4dabf7",
    "material": "#69db7c",
}
_TYPE_LABELS = {
    "producer": "End producers",
    "supplier": "Suppliers",
    "material": "Material providers",
}
_OTHER_COLOR = "#adb5bd"
_OTHER_LABEL = "Other companies"
_HIGHLIGHT_COLOR = "#ff9800"
_EDGE_COLOR = "rgba(150, 150, 150, 0.5)"


def _compute_layout(
    G: nx.Graph,
    seed: int = 42,
) -> dict[str, tuple[float, float]]:
    """
    Compute spring layout positions for all nodes in G.

    Uses nx.spring_layout with k=2/sqrt(N+1) to give a visually balanced
    force-directed layout that scales with graph size.
    """
    if G.number_of_nodes() == 0:
        return {}
    k_value = 2.0 / sqrt(len(G.nodes) + 1)
    pos = nx.spring_layout(G, seed=seed, k=k_value)
    return {node: (float(x), float(y)) for node, (x, y) in pos.items()}


def node_marker_size(level: int, highlighted: bool = False) -> float:
    """Tier-based marker size: end producers largest, materials smallest."""
    size = max(5, (4 - level) * 5)
    return size * 1.3 if highlighted else size


def build_plotly_figure(
    network: Network,
    highlighted_node_id: Optional[str] = None,
    title: str = "Defence Supply Chain Network",
) -> go.Figure:
    """
    Build an interactive Plotly graph of a supply network.

    Args:
        network:             Full or filtered Network.
        highlighted_node_id: Node to emphasise (typically the filter centre).
        title:               Figure title.

    Returns:
        Plotly Figure object (no IO, no files written).

    Notes:
        Links whose endpoints are not nodes of the network are not drawn.
    """
    G = network_to_digraph(network)
    G.remove_nodes_from([n for n, d in G.nodes(data=True) if "ticker" not in d])
    pos = _compute_layout(G, seed=42)

    # ── Edges: one line trace per link so widths can vary ─────────────────────
    edge_traces = []
    mid_x, mid_y, mid_text = [], [], []
    for link in network.links:
        if link.source not in pos or link.target not in pos:
            continue
        x0, y0 = pos[link.source]
        x1, y1 = pos[link.target]
        edge_traces.append(
            go.Scatter(
                x=[x0, x1],
                y=[y0, y1],
                mode="lines",
                line={"width": max(1.0, link.value / 2), "color": _EDGE_COLOR},
                hoverinfo="none",
                showlegend=False,
            )
        )
        mid_x.append((x0 + x1) / 2)
        mid_y.append((y0 + y1) / 2)
        mid_text.append(
            f"<b>{G.nodes[link.source]['name']} → {G.nodes[link.target]['name']}</b><br>"
            f"{link.description}<br>"
            f"Dependency strength: {link.value}/10"
        )

    # Invisible midpoint markers carry the link hover text.
    link_hover = go.Scatter(
        x=mid_x,
        y=mid_y,
        mode="markers",
        marker={"size": 6, "opacity": 0},
        text=mid_text,
        hovertemplate="%{text}<extra></extra>",
        showlegend=False,
    )

    # ── Nodes: one trace per type for the legend ──────────────────────────────
    # Unrecognised types share a grey "other" trace so every node is drawn.
    groups = [
        (_TYPE_LABELS[ntype], color, [n for n in network.nodes if n.type == ntype])
        for ntype, color in _NODE_COLORS_BY_TYPE.items()
    ]
    groups.append(
        (_OTHER_LABEL, _OTHER_COLOR, [n for n in network.nodes if n.type not in _NODE_COLORS_BY_TYPE])
    )

    node_traces = []
    for label, color, group in groups:
        nodes = [n for n in group if n.id in pos]
        if not nodes:
            continue

        highlighted = [n.id == highlighted_node_id for n in nodes]
        node_traces.append(
            go.Scatter(
                x=[pos[n.id][0] for n in nodes],
                y=[pos[n.id][1] for n in nodes],
                mode="markers+text",
                name=label,
                text=[n.name for n in nodes],
                textposition="middle right",
                customdata=[n.id for n in nodes],
                marker={
                    "size": [node_marker_size(n.level, h) for n, h in zip(nodes, highlighted)],
                    "color": color,
                    "line": {
                        "color": [_HIGHLIGHT_COLOR if h else "white" for h in highlighted],
                        "width": [3 if h else 1.5 for h in highlighted],
                    },
                },
                hovertext=[
                    f"<b>{n.name}</b> ({n.ticker})<br>"
                    f"Country: {n.country}<br>"
                    f"Products: {n.products}"
                    for n in nodes
                ],
                hovertemplate="%{hovertext}<extra></extra>",
            )
        )

    all_traces = edge_traces + [link_hover] + node_traces

    fig = go.Figure(
        data=all_traces,
        layout=go.Layout(
            title=title,
            showlegend=True,
            hovermode="closest",
            xaxis={"showgrid": False, "zeroline": False, "showticklabels": False},
            yaxis={"showgrid": False, "zeroline": False, "showticklabels": False},
            margin={"l": 20, "r": 20, "t": 60, "b": 20},
            paper_bgcolor="white",
            plot_bgcolor="white",
        ),
    )

    logger.info(
        "Plotly figure built: %d nodes, %d links, %d traces.",
        G.number_of_nodes(),
        len(edge_traces),
        len(all_traces),
    )
    return fig


def save_figure_html(fig: go.Figure, output_path: str) -> None:
    """Write a Plotly figure to a self-contained HTML file."""
    fig.write_html(output_path, include_plotlyjs="cdn")
    logger.info("Plotly figure saved to: %s", output_path)

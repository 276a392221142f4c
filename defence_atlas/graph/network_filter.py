"""
defence_atlas/graph/network_filter.py — Induced subgraph around one company.

When a user searches for a company or clicks it in the graph, the dashboard
narrows the full supply network to the part that matters for that company:

    - the company itself,
    - its direct consumers ("upstream": links where it is the source),
    - its suppliers, their suppliers, and so on ("downstream": links where
      it is the target), up to a depth bound,
    - every link whose two endpoints both survive.

The function is pure. It never mutates its input (Network is frozen), keeps
no state between calls and is safe to call concurrently on the same base
network.
"""

import logging

import networkx as nx

from defence_atlas.config import DEFAULT_CONFIG
from defence_atlas.graph.network import Link, Network, network_to_digraph

logger = logging.getLogger(__name__)


def _clamp_levels(levels) -> int:
    """Negative bounds become 0; fractional bounds are truncated."""
    return max(0, int(levels))


def filter_network_by_node(
    network: Network,
    node_id: str,
    upstream_levels: int = DEFAULT_CONFIG.default_upstream_levels,
    downstream_levels: int = DEFAULT_CONFIG.default_downstream_levels,
    *,
    multi_hop_upstream: bool = False,
) -> Network:
    """
    Filter the network to the connections relevant to one node.

    Args:
        network:            Full network snapshot (never modified).
        node_id:            Id of the node to centre the filter on.
        upstream_levels:    Hops toward consumers. See note below.
        downstream_levels:  Hops toward suppliers, e.g. 2 keeps suppliers and
                            their suppliers but not the tier below.
        multi_hop_upstream: Recurse upstream honouring upstream_levels
                            instead of the single-hop behaviour.

    Returns:
        A new Network. The original `network` object itself is returned when
        it has no nodes or when node_id is not one of its nodes.

    Notes:
        - Upstream is single-hop by default: any upstream_levels > 0 adds
          exactly the direct consumers. Existing callers rely on this
          (the UI default is 1). It is not yet settled whether upstream
          should recurse like downstream; multi_hop_upstream exists for that.
        - Links pointing at ids absent from network.nodes are followed like
          any other id but can never produce a node, so they drop out at
          finalization.
        - (0, 0) returns the selected node alone with no links, even if
          it has a self-referencing link.
    """
    if not node_id or not network.nodes:
        return network

    selected = next((node for node in network.nodes if node.id == node_id), None)
    if selected is None:
        logger.debug("Node '%s' not in network — returning it unfiltered.", node_id)
        return network

    upstream_levels = _clamp_levels(upstream_levels)
    downstream_levels = _clamp_levels(downstream_levels)

    if upstream_levels == 0 and downstream_levels == 0:
        return Network(nodes=(selected,), links=())

    G = network_to_digraph(network)
    included: set[str] = {node_id}

    # ── Upstream: who this node supplies ──────────────────────────────────────
    if upstream_levels > 0:
        if multi_hop_upstream:
            included.update(
                nx.single_source_shortest_path_length(G, node_id, cutoff=upstream_levels)
            )
        else:
            # Single hop regardless of the level count.
            included.update(G.successors(node_id))

    # ── Downstream: who supplies this node, recursively ───────────────────────
    if downstream_levels > 0:
        # Depth is the shortest hop distance to node_id.
        included.update(
            nx.single_source_shortest_path_length(
                G.reverse(copy=False), node_id, cutoff=downstream_levels
            )
        )

    # ── Finalization: induced subgraph, input order preserved ─────────────────
    # Dangling ids can be in `included`; links need both endpoints in `kept`.
    filtered_nodes = tuple(node for node in network.nodes if node.id in included)
    kept = {node.id for node in filtered_nodes}
    filtered_links: tuple[Link, ...] = tuple(
        link for link in network.links
        if link.source in kept and link.target in kept
    )

    logger.info(
        "Filtered network around '%s' (upstream=%d, downstream=%d): %d nodes, %d links.",
        node_id,
        upstream_levels,
        downstream_levels,
        len(filtered_nodes),
        len(filtered_links),
    )

    return Network(nodes=filtered_nodes, links=filtered_links)

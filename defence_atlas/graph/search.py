"""
defence_atlas/graph/search.py — Company lookup for the search bar.

Matches are case-insensitive substrings of the company name or ticker,
returned in network order so results are stable between keystrokes.
"""

import logging
from typing import Optional

from defence_atlas.config import DEFAULT_CONFIG
from defence_atlas.graph.network import Network, Node, node_id_from_ticker

logger = logging.getLogger(__name__)


def search_nodes(
    network: Network,
    query: str,
    limit: int = DEFAULT_CONFIG.search_result_limit,
) -> list[Node]:
    """Return up to `limit` nodes whose name or ticker contains `query`."""
    needle = (query or "").strip().lower()
    if not needle or limit <= 0:
        return []

    results: list[Node] = []
    for node in network.nodes:
        if needle in node.name.lower() or needle in node.ticker.lower():
            results.append(node)
            if len(results) >= limit:
                break

    logger.debug("Search '%s' matched %d node(s).", query, len(results))
    return results


def resolve_node_id(network: Network, query: str) -> Optional[str]:
    """
    Resolve a user-supplied identifier to a node id.

    Tries, in order: exact node id, exact ticker (case-insensitive), and the
    id derived from the query as if it were a ticker. Returns None when
    nothing matches.
    """
    query = (query or "").strip()
    if not query:
        return None

    ids = {node.id for node in network.nodes}
    if query in ids:
        return query

    lowered = query.lower()
    for node in network.nodes:
        if node.ticker.lower() == lowered:
            return node.id

    derived = node_id_from_ticker(query)
    return derived if derived in ids else None

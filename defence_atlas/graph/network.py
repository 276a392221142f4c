"""
defence_atlas/graph/network.py — Node / Link / Network value types.

The network is loaded once per request from the repository and never
mutated afterwards. All three types are frozen dataclasses holding tuples,
so filtering can hand out node and link objects by reference without any
risk of a caller editing the baseline network behind the filter's back.

Wire format (system boundary, JSON):
    {"nodes": [{id, name, ticker, ...}], "links": [{source, target, value, description}]}

Link endpoints are always plain id strings inside this package. The
rendering layer sometimes hands back links whose endpoints were resolved
to node objects; network_from_dict() normalizes those to ids on the way in.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

import networkx as nx

from defence_atlas.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)


NODE_TYPES = ("producer", "supplier", "material")


class NetworkDataError(ValueError):
    """Raised when a network payload is structurally unusable."""


@dataclass(frozen=True)
class Node:
    """
    A company in the supply network.

    Descriptive attributes (ticker, name, country, products, sector) are
    opaque to the filter. `type` and `level` are classification hints only;
    traversal depth is always computed, never read from `level`.
    """

    id: str
    name: str
    ticker: str
    country: str = ""
    products: str = ""
    type: str = "supplier"
    level: int = 0
    sector: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class Link:
    """Directed dependency: `target` depends on `source` (source supplies target)."""

    source: str
    target: str
    value: int = 1
    description: str = ""


@dataclass(frozen=True)
class Network:
    """Aggregate of nodes and links. Node ids are unique within a network."""

    nodes: tuple[Node, ...] = field(default_factory=tuple)
    links: tuple[Link, ...] = field(default_factory=tuple)


def node_id_from_ticker(ticker: str) -> str:
    """
    Derive the stable node id for a ticker symbol.

    'RHM.DE' → 'rhm-de', 'SAAB-B.ST' → 'saab-b-st'.
    """
    return ticker.strip().lower().replace(".", "-")


# ── Accessors ─────────────────────────────────────────────────────────────────

def node_ids(network: Network) -> set[str]:
    return {node.id for node in network.nodes}


def link_keys(network: Network) -> set[tuple[str, str]]:
    return {(link.source, link.target) for link in network.links}


def get_node(network: Network, node_id: str) -> Optional[Node]:
    for node in network.nodes:
        if node.id == node_id:
            return node
    return None


# ── Wire format ───────────────────────────────────────────────────────────────

def _endpoint_id(endpoint: Any) -> str:
    """Accept a plain id or an inline node object and return the id string."""
    if isinstance(endpoint, dict):
        endpoint = endpoint.get("id")
    if endpoint is None or endpoint == "":
        raise NetworkDataError("Link endpoint is missing an id.")
    return str(endpoint)


def node_from_dict(data: dict) -> Node:
    node_id = data.get("id")
    if not node_id:
        raise NetworkDataError(f"Node record has no id: {data!r}")

    node_type = data.get("type", "supplier")
    if node_type not in NODE_TYPES:
        logger.warning(
            "Unknown node type '%s' on node '%s' — keeping it as-is.", node_type, node_id
        )

    return Node(
        id=str(node_id),
        name=str(data.get("name", node_id)),
        ticker=str(data.get("ticker", "")),
        country=str(data.get("country", "")),
        products=str(data.get("products", "")),
        type=str(node_type),
        level=int(data.get("level", 0)),
        sector=data.get("sector"),
        category=data.get("category"),
        description=data.get("description"),
    )


def link_from_dict(data: dict) -> Link:
    if "source" not in data or "target" not in data:
        raise NetworkDataError(f"Link record needs source and target: {data!r}")

    value = int(data.get("value", DEFAULT_CONFIG.link_value_min))
    if not DEFAULT_CONFIG.link_value_min <= value <= DEFAULT_CONFIG.link_value_max:
        raise NetworkDataError(
            f"Link {data['source']!r} → {data['target']!r} has value {value}; must be between "
            f"{DEFAULT_CONFIG.link_value_min} and {DEFAULT_CONFIG.link_value_max}."
        )

    return Link(
        source=_endpoint_id(data["source"]),
        target=_endpoint_id(data["target"]),
        value=value,
        description=str(data.get("description", "")),
    )


def network_from_dict(payload: dict) -> Network:
    """
    Parse the JSON wire format into a Network.

    Duplicate node ids keep the first occurrence. Dangling link references
    are kept as-is; the filter treats them as dead ends.

    Raises:
        NetworkDataError: If nodes/links are not lists or a record is unusable.
    """
    raw_nodes = payload.get("nodes", [])
    raw_links = payload.get("links", [])
    if not isinstance(raw_nodes, list) or not isinstance(raw_links, list):
        raise NetworkDataError("Network payload must carry 'nodes' and 'links' lists.")

    nodes: list[Node] = []
    seen: set[str] = set()
    for record in raw_nodes:
        node = node_from_dict(record)
        if node.id in seen:
            logger.warning("Duplicate node id '%s' — keeping first occurrence.", node.id)
            continue
        seen.add(node.id)
        nodes.append(node)

    links = [link_from_dict(record) for record in raw_links]

    dangling = sum(1 for l in links if l.source not in seen or l.target not in seen)
    if dangling:
        logger.warning("%d link(s) reference unknown node ids.", dangling)

    return Network(nodes=tuple(nodes), links=tuple(links))


def _node_to_dict(node: Node) -> dict:
    # Optional attributes are omitted rather than serialized as null.
    return {k: v for k, v in asdict(node).items() if v is not None}


def network_to_dict(network: Network) -> dict:
    return {
        "nodes": [_node_to_dict(n) for n in network.nodes],
        "links": [asdict(l) for l in network.links],
    }


def load_network_json(path: str) -> Network:
    logger.info("Loading network from: %s", path)
    with open(path, encoding="utf-8") as fh:
        network = network_from_dict(json.load(fh))
    logger.info(
        "Loaded network: %d nodes, %d links.", len(network.nodes), len(network.links)
    )
    return network


def save_network_json(network: Network, path: str) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(network_to_dict(network), fh, indent=2)
    logger.info("Network written to: %s", path)


# ── NetworkX bridge ───────────────────────────────────────────────────────────

def network_to_digraph(network: Network) -> nx.DiGraph:
    """
    Build a NetworkX DiGraph with edges source → target.

    Node attributes are the Node fields; edge attributes are value and
    description. Dangling endpoints become bare nodes with no attributes,
    matching NetworkX's add_edge behaviour.
    """
    G = nx.DiGraph()
    for node in network.nodes:
        G.add_node(node.id, **_node_to_dict(node))
    for link in network.links:
        G.add_edge(link.source, link.target, value=link.value, description=link.description)
    return G

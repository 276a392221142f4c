"""
defence_atlas/tests/conftest.py — Shared pytest fixtures for the Defence Atlas test suite.

Fixtures:
    seed_network      — Bundled European defence supply network, session-scoped.
    chain_network     — Linear supply chain E → D → C → B → A.
    cycle_network     — Mutual supply X ⇄ Y.
    scenario_network  — tka → tkb → tkc.
    make_network      — Factory building a Network from ids and (source, target) pairs.
"""

import pytest

from defence_atlas.graph.builder import load_seed_network
from defence_atlas.graph.network import Link, Network, Node


def _make_node(node_id: str, node_type: str = "supplier", level: int = 1) -> Node:
    """Minimal Node with the id doubling as name and upper-cased ticker."""
    return Node(id=node_id, name=node_id.upper(), ticker=node_id.upper(), type=node_type, level=level)


def _make_network(node_list: list[str], edges: list[tuple[str, str]]) -> Network:
    """Network from node ids and (source, target) pairs; source supplies target."""
    return Network(
        nodes=tuple(_make_node(n) for n in node_list),
        links=tuple(
            Link(source=s, target=t, value=5, description=f"{s} supplies {t}")
            for s, t in edges
        ),
    )


@pytest.fixture
def make_network():
    """Factory: make_network(node_ids, [(source, target), ...]) -> Network."""
    return _make_network


@pytest.fixture(scope="session")
def seed_network() -> Network:
    return load_seed_network()


@pytest.fixture
def chain_network() -> Network:
    # E supplies D supplies C supplies B supplies A.
    return _make_network(
        ["A", "B", "C", "D", "E"],
        [("E", "D"), ("D", "C"), ("C", "B"), ("B", "A")],
    )


@pytest.fixture
def cycle_network() -> Network:
    return _make_network(["X", "Y"], [("Y", "X"), ("X", "Y")])


@pytest.fixture
def scenario_network() -> Network:
    return _make_network(["tka", "tkb", "tkc"], [("tka", "tkb"), ("tkb", "tkc")])

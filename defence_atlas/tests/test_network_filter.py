"""
defence_atlas/tests/test_network_filter.py — Tests for the node-centred network filter.

Tests verify:
- Unknown node ids and empty networks are returned untouched.
- The selected node is always in the result.
- (0, 0) isolates the selected node with no links.
- Downstream depth bound on a linear supply chain.
- Termination and exact result on a supply cycle.
- Every result link has both endpoints in the result and exists in the input.
- The input network is not modified.
- Upstream is single-hop unless multi_hop_upstream is requested.
- Dangling link references and negative / fractional bounds are tolerated.
- Results agree with a NetworkX shortest-path oracle on the seed network.
"""

import copy

import networkx as nx
import pytest

from defence_atlas.graph.network import Network, link_keys, network_to_digraph, node_ids
from defence_atlas.graph.network_filter import filter_network_by_node


# ── No-op cases ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize("up, down", [(0, 0), (1, 3), (5, 5), (0, 2)])
def test_unknown_node_returns_network_unchanged(chain_network, up, down):
    result = filter_network_by_node(chain_network, "missing", up, down)
    assert result is chain_network
    assert node_ids(result) == node_ids(chain_network)
    assert link_keys(result) == link_keys(chain_network)


def test_empty_network_returned_unchanged():
    empty = Network()
    assert filter_network_by_node(empty, "A") is empty


def test_empty_node_id_returns_network_unchanged(chain_network):
    assert filter_network_by_node(chain_network, "") is chain_network


# ── Selected-node inclusion ───────────────────────────────────────────────────

def test_selected_node_always_included(seed_network):
    for node in seed_network.nodes:
        for up, down in [(0, 0), (1, 0), (0, 1), (1, 3)]:
            result = filter_network_by_node(seed_network, node.id, up, down)
            assert node.id in node_ids(result)


def test_isolated_node_yields_itself_only(make_network):
    net = make_network(["A", "B", "lonely"], [("A", "B")])
    result = filter_network_by_node(net, "lonely", 1, 3)
    assert node_ids(result) == {"lonely"}
    assert result.links == ()


# ── Zero / zero isolation ─────────────────────────────────────────────────────

def test_zero_zero_returns_only_selected_node(seed_network):
    result = filter_network_by_node(seed_network, "ho-pa", 0, 0)
    assert [n.id for n in result.nodes] == ["ho-pa"]
    assert result.links == ()


def test_zero_zero_drops_self_link(make_network):
    net = make_network(["A"], [("A", "A")])
    result = filter_network_by_node(net, "A", 0, 0)
    assert node_ids(result) == {"A"}
    assert result.links == ()


# ── Downstream depth bound ────────────────────────────────────────────────────

def test_downstream_two_levels_on_chain(chain_network):
    result = filter_network_by_node(chain_network, "A", downstream_levels=2)
    assert node_ids(result) == {"A", "B", "C"}
    assert "D" not in node_ids(result)
    assert "E" not in node_ids(result)


def test_downstream_four_levels_on_chain(chain_network):
    result = filter_network_by_node(chain_network, "A", downstream_levels=4)
    assert node_ids(result) == {"A", "B", "C", "D", "E"}
    assert len(result.links) == 4


def test_downstream_one_level_is_direct_suppliers(chain_network):
    result = filter_network_by_node(chain_network, "C", upstream_levels=0, downstream_levels=1)
    assert node_ids(result) == {"C", "D"}
    assert link_keys(result) == {("D", "C")}


def test_downstream_uses_shortest_hop_distance(make_network):
    # P supplies A directly and through L1. Reaching P through L1 first must
    # not stop its suppliers from being counted at P's real distance of 1.
    net = make_network(
        ["A", "L1", "P", "Q", "R"],
        [("L1", "A"), ("P", "L1"), ("P", "A"), ("Q", "P"), ("R", "Q")],
    )
    result = filter_network_by_node(net, "A", upstream_levels=0, downstream_levels=3)
    assert node_ids(result) == {"A", "L1", "P", "Q", "R"}


# ── Cycle termination ─────────────────────────────────────────────────────────

def test_cycle_terminates_with_exactly_both_nodes(cycle_network):
    result = filter_network_by_node(cycle_network, "X", downstream_levels=10)
    assert node_ids(result) == {"X", "Y"}
    assert link_keys(result) == {("X", "Y"), ("Y", "X")}


def test_large_cycle_with_huge_depth_terminates(make_network):
    ring = [f"n{i}" for i in range(200)]
    edges = [(ring[(i + 1) % 200], ring[i]) for i in range(200)]
    net = make_network(ring, edges)
    result = filter_network_by_node(net, "n0", 1, 10_000)
    assert node_ids(result) == set(ring)


def test_deep_chain_does_not_hit_recursion_limit(make_network):
    chain = [f"c{i}" for i in range(5000)]
    edges = [(chain[i + 1], chain[i]) for i in range(4999)]
    net = make_network(chain, edges)
    result = filter_network_by_node(net, "c0", 0, 5000)
    assert len(result.nodes) == 5000


# ── Link filtering consistency ────────────────────────────────────────────────

def test_result_links_have_both_endpoints_and_exist_in_input(seed_network):
    original_links = link_keys(seed_network)
    for node in seed_network.nodes:
        result = filter_network_by_node(seed_network, node.id, 1, 3)
        kept = node_ids(result)
        for link in result.links:
            assert link.source in kept
            assert link.target in kept
            assert (link.source, link.target) in original_links


def test_result_is_induced_subgraph(seed_network):
    result = filter_network_by_node(seed_network, "ho-pa", 1, 3)
    kept = node_ids(result)
    expected = {
        (l.source, l.target) for l in seed_network.links
        if l.source in kept and l.target in kept
    }
    assert link_keys(result) == expected


def test_input_order_preserved(seed_network):
    result = filter_network_by_node(seed_network, "rhm-de", 1, 3)
    order = [n.id for n in seed_network.nodes]
    positions = [order.index(n.id) for n in result.nodes]
    assert positions == sorted(positions)


# ── Non-mutation ──────────────────────────────────────────────────────────────

def test_input_network_not_mutated(seed_network):
    snapshot = copy.deepcopy(seed_network)
    filter_network_by_node(seed_network, "rhm-de", 1, 3)
    filter_network_by_node(seed_network, "tka-de", 0, 0)
    filter_network_by_node(seed_network, "private:mbda", 5, 5, multi_hop_upstream=True)
    assert seed_network == snapshot
    assert len(seed_network.nodes) == len(snapshot.nodes)
    assert len(seed_network.links) == len(snapshot.links)


def test_result_is_new_network_value(chain_network):
    result = filter_network_by_node(chain_network, "A", 1, 4)
    assert result is not chain_network
    # Equal contents, distinct value; node objects may be shared.
    assert result == chain_network
    assert result.nodes[0] is chain_network.nodes[0]


# ── Scenario ──────────────────────────────────────────────────────────────────

def test_scenario_middle_company(scenario_network):
    result = filter_network_by_node(scenario_network, "tkb", 1, 3)
    assert node_ids(result) == {"tka", "tkb", "tkc"}
    assert link_keys(result) == {("tka", "tkb"), ("tkb", "tkc")}


def test_scenario_company_only(scenario_network):
    result = filter_network_by_node(scenario_network, "tka", 0, 0)
    assert node_ids(result) == {"tka"}
    assert result.links == ()


def test_seed_rheinmetall_default_levels(seed_network):
    result = filter_network_by_node(seed_network, "rhm-de")
    assert node_ids(result) == {
        "rhm-de",
        "ho-pa", "hag-de", "tka-de", "bas-de",     # direct suppliers
        "ifx-de", "stm-pa", "idr-mc",              # their suppliers
        "umi-br", "mt-as",                         # third tier
    }
    assert len(result.links) == 13


# ── Upstream semantics ────────────────────────────────────────────────────────

def test_upstream_is_single_hop_by_default(chain_network):
    # From E, consumers are D (1 hop), C (2 hops), ...
    result = filter_network_by_node(chain_network, "E", upstream_levels=5, downstream_levels=0)
    assert node_ids(result) == {"E", "D"}


def test_upstream_zero_skips_consumers(chain_network):
    result = filter_network_by_node(chain_network, "C", upstream_levels=0, downstream_levels=1)
    assert "B" not in node_ids(result)


def test_multi_hop_upstream_honours_levels(chain_network):
    result = filter_network_by_node(
        chain_network, "E", upstream_levels=3, downstream_levels=0, multi_hop_upstream=True
    )
    assert node_ids(result) == {"E", "D", "C", "B"}


def test_multi_hop_upstream_on_cycle_terminates(cycle_network):
    result = filter_network_by_node(
        cycle_network, "X", upstream_levels=50, downstream_levels=0, multi_hop_upstream=True
    )
    assert node_ids(result) == {"X", "Y"}


# ── Malformed input ───────────────────────────────────────────────────────────

def test_dangling_link_is_dead_end(make_network):
    net = make_network(["A", "B"], [("B", "A"), ("ghost", "B"), ("A", "phantom")])
    result = filter_network_by_node(net, "A", 1, 3)
    assert node_ids(result) == {"A", "B"}
    assert link_keys(result) == {("B", "A")}


def test_dangling_links_never_reach_result(make_network):
    # ghost supplies B and is itself supplied by C; only real nodes survive.
    net = make_network(["A", "B", "C"], [("B", "A"), ("ghost", "B"), ("C", "ghost")])
    result = filter_network_by_node(net, "A", 1, 5, multi_hop_upstream=True)
    kept = node_ids(result)
    assert kept == {"A", "B", "C"}
    assert link_keys(result) == {("B", "A")}
    assert all(l.source in kept and l.target in kept for l in result.links)


def test_negative_levels_clamped_to_zero(chain_network):
    result = filter_network_by_node(chain_network, "C", -1, -5)
    assert node_ids(result) == {"C"}
    assert result.links == ()


def test_negative_upstream_with_positive_downstream(chain_network):
    result = filter_network_by_node(chain_network, "C", -3, 1)
    assert node_ids(result) == {"C", "D"}


def test_fractional_levels_truncated(chain_network):
    result = filter_network_by_node(chain_network, "A", 0, 2.9)
    assert node_ids(result) == {"A", "B", "C"}


# ── Oracle: NetworkX shortest paths ───────────────────────────────────────────

@pytest.mark.parametrize("up", [0, 1])
@pytest.mark.parametrize("down", [1, 2, 3, 4, 5])
def test_matches_networkx_reachability(seed_network, up, down):
    G = network_to_digraph(seed_network)
    R = G.reverse(copy=False)
    for node in seed_network.nodes:
        expected = {node.id}
        if up:
            expected |= set(G.successors(node.id))
        expected |= set(nx.single_source_shortest_path_length(R, node.id, cutoff=down))
        result = filter_network_by_node(seed_network, node.id, up, down)
        assert node_ids(result) == expected, node.id

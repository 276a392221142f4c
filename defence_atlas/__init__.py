"""
defence_atlas — Supply-chain network backbone for the Defence Industry Dashboard.

The dashboard shows European defence companies, the suppliers they depend on,
and the material providers further down the chain. This package owns the
dependency network: its data model, construction from repository rows, the
node-centred filter used by search and graph clicks, and the API / CLI /
visualization surfaces around it.

Modules:
- defence_atlas.graph.network         — Node / Link / Network value types + JSON wire format
- defence_atlas.graph.network_filter  — Induced subgraph around one company
- defence_atlas.graph.builder         — Network construction from records, CSV, DB-API
- defence_atlas.graph.search          — Name / ticker search
"""

__version__ = "0.1.0"

"""
defence_atlas.graph — Supply network model, construction and filtering.

Modules:
    network         — Node / Link / Network value types, JSON wire format, NetworkX bridge.
    network_filter  — Induced subgraph around a selected company.
    builder         — Build the network from records, CSV exports or the database.
    search          — Name / ticker search and id resolution.

Link direction: source supplies target. "Upstream" from a company means
toward its consumers; "downstream" means toward its suppliers.
"""

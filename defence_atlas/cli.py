"""
defence_atlas/cli.py — Command-line interface for the supply network.

Usage:
    python -m defence_atlas.cli filter rhm-de                # default 1 up / 3 down
    python -m defence_atlas.cli filter TKA.DE --only         # this company only
    python -m defence_atlas.cli search thales
    python -m defence_atlas.cli show                         # network summary
    python -m defence_atlas.cli build companies.csv dependencies.csv -o network.json

Every command reads the bundled seed network unless --network points at a
JSON export. Commands load a .env file from the repo root (or --env-file)
before running, without overriding variables already set.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections import Counter
from pathlib import Path

from defence_atlas.config import DEFAULT_CONFIG
from defence_atlas.graph.builder import build_network_from_csv, load_seed_network
from defence_atlas.graph.network import (
    Network,
    NetworkDataError,
    load_network_json,
    network_to_dict,
    save_network_json,
)
from defence_atlas.graph.network_filter import filter_network_by_node
from defence_atlas.graph.search import resolve_node_id, search_nodes


# ── .env loader (stdlib only — no python-dotenv required) ────────────────────

def _load_dotenv(env_file: str | None = None) -> dict[str, str]:
    """Load key=value pairs from a .env file into the environment.

    Existing environment values are NOT overwritten. Returns the dict of
    values that were newly loaded.

    Args:
        env_file: Explicit path. If None, searches for .env starting from the
                  repo root up to the filesystem root.
    """
    if env_file is None:
        start = Path(__file__).parent.parent
        for directory in [start, *start.parents]:
            candidate = directory / ".env"
            if candidate.is_file():
                env_file = str(candidate)
                break

    if not env_file or not Path(env_file).is_file():
        return {}

    loaded: dict[str, str] = {}
    with open(env_file, encoding="utf-8") as fh:
        for raw_line in fh:
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                value = value[1:-1]
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


# ── Logging setup ─────────────────────────────────────────────────────────────

def _setup_logging(level: str = "INFO") -> None:
    """Configure root logger with timestamps on stderr."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    fmt = "%(asctime)s  %(levelname)-8s  %(name)s — %(message)s"
    logging.basicConfig(level=numeric, format=fmt, datefmt="%H:%M:%S", stream=sys.stderr)


logger = logging.getLogger("defence_atlas.cli")


def _prepare(args: argparse.Namespace) -> None:
    _load_dotenv(args.env_file)
    _setup_logging(args.log_level)


def _load_network(args: argparse.Namespace) -> Network | None:
    """Load --network (or the seed network); log and return None if unusable."""
    path = args.network or DEFAULT_CONFIG.seed_network_path
    try:
        return load_network_json(path) if args.network else load_seed_network()
    except (OSError, ValueError) as exc:
        # ValueError covers NetworkDataError and malformed JSON.
        logger.error("Could not load network from %s: %s", path, exc)
        return None


def _emit(payload: dict, output: str | None) -> None:
    text = json.dumps(payload, indent=2)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %s", output)
    else:
        print(text)


# ── Subcommand: filter ────────────────────────────────────────────────────────

def cmd_filter(args: argparse.Namespace) -> int:
    """Print the induced subgraph around one company as JSON."""
    _prepare(args)
    network = _load_network(args)
    if network is None:
        return 1

    node_id = resolve_node_id(network, args.node)
    if node_id is None:
        # Same no-op as the filter itself: an unknown company yields the full network.
        logger.warning("No company matches '%s'; emitting the full network.", args.node)
        node_id = args.node

    if args.only:
        upstream, downstream = 0, 0
    else:
        upstream, downstream = args.upstream, args.downstream

    filtered = filter_network_by_node(
        network, node_id, upstream, downstream, multi_hop_upstream=args.multi_hop_upstream
    )
    _emit(network_to_dict(filtered), args.output)
    return 0


# ── Subcommand: search ────────────────────────────────────────────────────────

def cmd_search(args: argparse.Namespace) -> int:
    """List companies whose name or ticker contains the query."""
    _prepare(args)
    network = _load_network(args)
    if network is None:
        return 1

    results = search_nodes(network, args.query, limit=args.limit)
    if not results:
        print(f"No companies match '{args.query}'.")
        return 1

    for node in results:
        print(f"  {node.id:<20} {node.ticker:<16} {node.name}  ({node.country})")
    return 0


# ── Subcommand: show ──────────────────────────────────────────────────────────

def cmd_show(args: argparse.Namespace) -> int:
    """Print a summary of the network."""
    _prepare(args)
    network = _load_network(args)
    if network is None:
        return 1

    types = Counter(node.type for node in network.nodes)
    ids = {node.id for node in network.nodes}
    dangling = sum(1 for l in network.links if l.source not in ids or l.target not in ids)

    print()
    print("=" * 50)
    print("  DEFENCE ATLAS — NETWORK SUMMARY")
    print("=" * 50)
    print(f"  Companies          : {len(network.nodes)}")
    for node_type in ("producer", "supplier", "material"):
        print(f"    {node_type:<16} : {types.get(node_type, 0)}")
    print(f"  Dependencies       : {len(network.links)}")
    print(f"  Dangling links     : {dangling}")
    print("=" * 50)
    return 0


# ── Subcommand: build ─────────────────────────────────────────────────────────

def cmd_build(args: argparse.Namespace) -> int:
    """Build a network JSON file from companies / dependencies CSV exports."""
    _prepare(args)
    try:
        network = build_network_from_csv(args.companies, args.dependencies)
    except NetworkDataError as exc:
        logger.error("Could not build network: %s", exc)
        return 1

    save_network_json(network, args.output)
    print(f"  {len(network.nodes)} companies, {len(network.links)} dependencies → {args.output}")
    return 0


# ── Parser ────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="defence-atlas",
        description="Defence industry supply-chain network tools.",
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )
    parser.add_argument(
        "--env-file", default=None, metavar="PATH",
        help="Path to .env file (default: search upward from the repo root)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_network_flag(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--network", default=None, metavar="PATH",
            help="Network JSON export (default: bundled seed network)",
        )

    # filter
    p_filter = subparsers.add_parser("filter", help="Subgraph around one company")
    p_filter.add_argument(
        "node", metavar="NODE",
        help="Node id or ticker, e.g. rhm-de or RHM.DE (unknown: full network)",
    )
    p_filter.add_argument(
        "--upstream", type=int, default=DEFAULT_CONFIG.default_upstream_levels, metavar="N",
        help=f"Levels toward consumers (default: {DEFAULT_CONFIG.default_upstream_levels})",
    )
    p_filter.add_argument(
        "--downstream", type=int, default=DEFAULT_CONFIG.default_downstream_levels, metavar="N",
        help=f"Levels toward suppliers (default: {DEFAULT_CONFIG.default_downstream_levels})",
    )
    p_filter.add_argument("--only", action="store_true", help="This company only (0/0 levels)")
    p_filter.add_argument(
        "--multi-hop-upstream", action="store_true",
        help="Recurse upstream up to --upstream levels instead of one hop",
    )
    p_filter.add_argument("-o", "--output", default=None, metavar="PATH")
    add_network_flag(p_filter)
    p_filter.set_defaults(func=cmd_filter)

    # search
    p_search = subparsers.add_parser("search", help="Find companies by name or ticker")
    p_search.add_argument("query", metavar="QUERY")
    p_search.add_argument(
        "--limit", type=int, default=DEFAULT_CONFIG.search_result_limit, metavar="N",
    )
    add_network_flag(p_search)
    p_search.set_defaults(func=cmd_search)

    # show
    p_show = subparsers.add_parser("show", help="Summarize the network")
    add_network_flag(p_show)
    p_show.set_defaults(func=cmd_show)

    # build
    p_build = subparsers.add_parser("build", help="Build network JSON from CSV exports")
    p_build.add_argument("companies", metavar="COMPANIES_CSV")
    p_build.add_argument("dependencies", metavar="DEPENDENCIES_CSV")
    p_build.add_argument("-o", "--output", required=True, metavar="PATH")
    p_build.set_defaults(func=cmd_build)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

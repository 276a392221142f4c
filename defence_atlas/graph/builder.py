"""
defence_atlas/graph/builder.py — Network construction layer.

Builds the dependency Network from repository rows. Three entry points share
one record-level builder:

    build_network_from_records — plain mappings (API payloads, test fixtures)
    build_network_from_csv     — companies + dependencies CSV exports
    build_network_from_db      — the relational tables, via any DB-API connection

Repository schema (relational side):
    companies(ticker, name, country, products, sector, description,
              category_id → company_categories.name,
              material_category_id → material_categories.name)
    dependencies(source_ticker, target_ticker, value, description)

Node ids are derived from tickers (node_id_from_ticker), so a dependency row
keyed by tickers maps directly onto node ids.
"""

import logging
from typing import Any, Iterable, Mapping, Optional

import pandas as pd

from defence_atlas.config import DEFAULT_CONFIG, DefenceAtlasConfig
from defence_atlas.graph.network import (
    Link,
    Network,
    NetworkDataError,
    Node,
    load_network_json,
    node_id_from_ticker,
)

logger = logging.getLogger(__name__)


# Company category (company_categories.name) → (node type, tier hint).
CATEGORY_CLASSIFICATION: dict[str, tuple[str, int]] = {
    "defense": ("producer", 0),
    "potential": ("supplier", 1),
    "materials": ("material", 3),
}

COMPANIES_QUERY = """
    SELECT c.ticker, c.name, c.country, c.products, c.sector, c.description,
           cc.name AS category_name, mc.name AS material_category
    FROM companies c
    JOIN company_categories cc ON c.category_id = cc.id
    LEFT JOIN material_categories mc ON c.material_category_id = mc.id
    ORDER BY c.name ASC
"""

DEPENDENCIES_QUERY = """
    SELECT d.source_ticker, d.target_ticker, d.value, d.description
    FROM dependencies d
    ORDER BY d.id ASC
"""


def _clean(value: Any) -> Any:
    """Map pandas/SQL missing markers (NaN, None) to None."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def _text(record: Mapping, key: str, default: str = "") -> str:
    value = _clean(record.get(key))
    return default if value is None else str(value).strip()


def _company_to_node(record: Mapping) -> Node:
    ticker = _text(record, "ticker")
    if not ticker:
        raise NetworkDataError(f"Company record has no ticker: {dict(record)!r}")

    category_name = _text(record, "category_name").lower()
    node_type, level = CATEGORY_CLASSIFICATION.get(category_name, ("supplier", 1))

    # Explicit classification wins over the category-derived default.
    if _clean(record.get("type")) is not None:
        node_type = _text(record, "type")
    if _clean(record.get("level")) is not None:
        level = int(record["level"])

    return Node(
        id=node_id_from_ticker(ticker),
        name=_text(record, "name", default=ticker),
        ticker=ticker,
        country=_text(record, "country"),
        products=_text(record, "products"),
        type=node_type,
        level=level,
        sector=_clean(record.get("sector")),
        category=_clean(record.get("material_category")) or _clean(record.get("category")),
        description=_clean(record.get("description")),
    )


def _dependency_to_link(record: Mapping, config: DefenceAtlasConfig) -> Link:
    source = _text(record, "source_ticker") or _text(record, "source")
    target = _text(record, "target_ticker") or _text(record, "target")
    if not source or not target:
        raise NetworkDataError(f"Dependency record needs source and target: {dict(record)!r}")

    value = _clean(record.get("value"))
    value = int(value) if value is not None else config.link_value_min
    if not config.link_value_min <= value <= config.link_value_max:
        raise NetworkDataError(
            f"Dependency {source} → {target} has value {value}; "
            f"must be between {config.link_value_min} and {config.link_value_max}."
        )

    return Link(
        source=node_id_from_ticker(source),
        target=node_id_from_ticker(target),
        value=value,
        description=_text(record, "description"),
    )


def build_network_from_records(
    companies: Iterable[Mapping],
    dependencies: Iterable[Mapping],
    config: DefenceAtlasConfig = DEFAULT_CONFIG,
) -> Network:
    """
    Build a Network from company and dependency rows.

    Company rows carry ticker, name, country, products and optionally sector,
    description, material_category/category, and either an explicit
    type/level or a category_name ('defense', 'potential', 'materials') from
    which type/level are inferred.

    Dependency rows carry source_ticker/target_ticker (or source/target),
    value (1–10) and description.

    Notes:
        - Duplicate tickers: first occurrence wins, a warning is logged.
        - Dependencies on unknown tickers are kept. The filter treats them
          as dead ends, and dropping them here would hide data problems
          from the admin dependency list.

    Raises:
        NetworkDataError: Missing ticker, missing endpoint, or value out of range.
    """
    nodes: list[Node] = []
    seen: set[str] = set()
    for record in companies:
        node = _company_to_node(record)
        if node.id in seen:
            logger.warning("Duplicate ticker '%s' — keeping first occurrence.", node.ticker)
            continue
        seen.add(node.id)
        nodes.append(node)

    logger.info("Added %d company nodes.", len(nodes))

    links: list[Link] = []
    for record in dependencies:
        link = _dependency_to_link(record, config)
        if link.source not in seen or link.target not in seen:
            logger.warning(
                "Dependency %s → %s references an unknown company.", link.source, link.target
            )
        links.append(link)

    logger.info("Added %d dependency links.", len(links))

    return Network(nodes=tuple(nodes), links=tuple(links))


def build_network_from_csv(
    companies_path: str,
    dependencies_path: str,
    config: DefenceAtlasConfig = DEFAULT_CONFIG,
) -> Network:
    """
    Build the network from CSV exports of the companies and dependencies tables.

    Column names follow the relational schema (see module docstring); any
    extra columns are ignored.
    """
    logger.info("Loading companies from: %s", companies_path)
    df_companies = pd.read_csv(companies_path)
    logger.info("Loading dependencies from: %s", dependencies_path)
    df_dependencies = pd.read_csv(dependencies_path)

    return build_network_from_records(
        df_companies.to_dict(orient="records"),
        df_dependencies.to_dict(orient="records"),
        config,
    )


def build_network_from_db(
    conn: Any,
    config: DefenceAtlasConfig = DEFAULT_CONFIG,
) -> Network:
    """
    Build the network from the relational tables.

    Args:
        conn:   DB-API connection (sqlite3, psycopg2) or SQLAlchemy connectable,
                anything pandas.read_sql_query accepts.
        config: DefenceAtlasConfig instance.

    Returns:
        Network snapshot, read once; callers filter it without re-querying.
    """
    df_companies = pd.read_sql_query(COMPANIES_QUERY, conn)
    df_dependencies = pd.read_sql_query(DEPENDENCIES_QUERY, conn)

    network = build_network_from_records(
        df_companies.to_dict(orient="records"),
        df_dependencies.to_dict(orient="records"),
        config,
    )
    logger.info(
        "Network loaded from database: %d nodes, %d links.",
        len(network.nodes),
        len(network.links),
    )
    return network


def load_seed_network(config: DefenceAtlasConfig = DEFAULT_CONFIG, path: Optional[str] = None) -> Network:
    """Load the bundled European defence supply-chain snapshot."""
    return load_network_json(path or config.seed_network_path)

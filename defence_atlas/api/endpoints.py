"""
defence_atlas/api/endpoints.py — FastAPI surface for the supply network.

Responses use the dashboard's envelope: {"success": true, ...} on success,
{"success": false, "error": "..."} with a 4xx/5xx status otherwise.

Endpoint summary:
    GET  /api/v1/health                       — Liveness probe.
    GET  /api/network                         — Full network snapshot.
    GET  /api/network/node/{node_id}          — One node.
    GET  /api/network/filter                  — Induced subgraph around a node.
    GET  /api/network/search                  — Name / ticker search.
    POST /api/admin/auth                      — Bearer token check.
    GET  /api/admin/dependencies              — Dependency list with company names.
    POST /api/admin/dependencies/validate     — Validate a dependency before saving.

Admin routes compare the bearer token against ADMIN_API_KEY (falling back to
the development key). Persistence of admin edits is owned by the repository
layer, not by this module.
"""

import logging
from typing import Callable, Optional

from fastapi import FastAPI, Header, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from defence_atlas import __version__
from defence_atlas.config import DEFAULT_CONFIG, DefenceAtlasConfig
from defence_atlas.graph.builder import load_seed_network
from defence_atlas.graph.network import (
    Network,
    get_node,
    network_to_dict,
    node_id_from_ticker,
)
from defence_atlas.graph.network_filter import filter_network_by_node
from defence_atlas.graph.search import search_nodes

logger = logging.getLogger(__name__)


# ── Request / Response models ─────────────────────────────────────────────────

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class DependencyPayload(BaseModel):
    """Request body for POST /api/admin/dependencies/validate. Tickers, not ids."""
    source: Optional[str] = None
    target: Optional[str] = None
    description: Optional[str] = None
    value: Optional[int] = None


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1]
    return None


def create_app(
    network_provider_fn: Optional[Callable[[], Network]] = None,
    config: DefenceAtlasConfig = DEFAULT_CONFIG,
) -> FastAPI:
    """
    Create and return the Defence Atlas FastAPI application.

    The network_provider_fn is called with no arguments once per request and
    must return a Network. This allows injection of fixture networks (tests)
    or a database-backed builder (production) without changing the routes.

    Args:
        network_provider_fn: Callable returning a Network. Defaults to the
                             bundled seed network.
        config:              DefenceAtlasConfig instance.

    Returns:
        Configured FastAPI application instance.
    """
    provider = network_provider_fn or (lambda: load_seed_network(config))

    app = FastAPI(
        title="Defence Atlas API",
        version=__version__,
        description=(
            "Supply-chain network of the European defence industry: companies, "
            "their suppliers, and node-centred filtering for the dashboard graph."
        ),
    )

    def _is_admin(authorization: Optional[str]) -> bool:
        token = _bearer_token(authorization)
        return token is not None and token == config.admin_api_key()

    # ── Routes ────────────────────────────────────────────────────────────────

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["system"])
    async def health() -> dict:
        """Liveness probe — returns service status and version."""
        return {"status": "ok", "version": __version__}

    @app.get("/api/network", tags=["network"])
    def get_network():
        """Return the full network snapshot."""
        try:
            network = provider()
        except Exception:
            logger.exception("Error fetching network data.")
            return _error(500, "Failed to fetch network data")
        return {"success": True, "network": network_to_dict(network)}

    @app.get("/api/network/node/{node_id}", tags=["network"])
    def get_network_node(node_id: str):
        """
        Return a single node.

        Raises:
            404: If node_id is not in the network.
        """
        try:
            network = provider()
        except Exception:
            logger.exception("Error fetching network node %s.", node_id)
            return _error(500, "Failed to fetch network node")

        node = get_node(network, node_id)
        if node is None:
            return _error(404, f"Node '{node_id}' not found")
        return {"success": True, "node": network_to_dict(Network(nodes=(node,)))["nodes"][0]}

    @app.get("/api/network/filter", tags=["network"])
    def get_filtered_network(
        node_id: str = Query(..., min_length=1),
        upstream_levels: int = Query(config.default_upstream_levels),
        downstream_levels: int = Query(config.default_downstream_levels),
    ):
        """
        Return the induced subgraph around node_id.

        Unknown node ids return the full network, matching the filter's
        no-op contract. Negative levels are clamped to 0 by the filter.
        """
        try:
            network = provider()
        except Exception:
            logger.exception("Error fetching network data for filter.")
            return _error(500, "Failed to fetch network data")

        filtered = filter_network_by_node(network, node_id, upstream_levels, downstream_levels)
        return {
            "success": True,
            "selected": node_id,
            "network": network_to_dict(filtered),
        }

    @app.get("/api/network/search", tags=["network"])
    def search(q: str = Query(""), limit: int = Query(config.search_result_limit, ge=1)):
        """Case-insensitive name / ticker search."""
        try:
            network = provider()
        except Exception:
            logger.exception("Error fetching network data for search.")
            return _error(500, "Failed to fetch network data")

        results = search_nodes(network, q, limit=limit)
        return {
            "success": True,
            "results": network_to_dict(Network(nodes=tuple(results)))["nodes"],
        }

    @app.post("/api/admin/auth", tags=["admin"])
    def admin_auth(authorization: Optional[str] = Header(None)):
        """Verify the admin bearer token."""
        if _is_admin(authorization):
            return {"success": True, "message": "Authorization successful"}
        return _error(
            401,
            "Unauthorized",
            headerKeyProvided=_bearer_token(authorization) is not None,
        )

    @app.get("/api/admin/dependencies", tags=["admin"])
    def admin_dependencies(authorization: Optional[str] = Header(None)):
        """List every dependency with its source and target company names."""
        if not _is_admin(authorization):
            return _error(401, "Unauthorized")

        try:
            network = provider()
        except Exception:
            logger.exception("Error fetching dependencies.")
            return _error(500, "Failed to fetch dependencies")

        names = {node.id: node.name for node in network.nodes}
        dependencies = [
            {
                "source": link.source,
                "target": link.target,
                "value": link.value,
                "description": link.description,
                "source_name": names.get(link.source),
                "target_name": names.get(link.target),
            }
            for link in network.links
        ]
        dependencies.sort(key=lambda d: (d["source_name"] or "", d["target_name"] or ""))
        return {"success": True, "dependencies": dependencies}

    @app.post("/api/admin/dependencies/validate", tags=["admin"])
    def admin_validate_dependency(
        payload: DependencyPayload,
        authorization: Optional[str] = Header(None),
    ):
        """
        Validate a dependency before the repository layer stores it.

        Checks required fields, the 1–10 value range, that both companies
        exist, and that the dependency is not a duplicate.
        """
        if not _is_admin(authorization):
            return _error(401, "Unauthorized")

        if not payload.source or not payload.target or not payload.description or payload.value is None:
            return _error(400, "Missing required fields")

        if not config.link_value_min <= payload.value <= config.link_value_max:
            return _error(
                400,
                f"Value must be between {config.link_value_min} and {config.link_value_max}",
            )

        try:
            network = provider()
        except Exception:
            logger.exception("Error fetching network data for validation.")
            return _error(500, "Failed to validate dependency")

        source_id = node_id_from_ticker(payload.source)
        target_id = node_id_from_ticker(payload.target)
        known = {node.id for node in network.nodes}
        if source_id not in known or target_id not in known:
            return _error(400, "Source or target company does not exist")

        if any(l.source == source_id and l.target == target_id for l in network.links):
            return _error(409, "Dependency already exists")

        return {
            "success": True,
            "dependency": {
                "source": source_id,
                "target": target_id,
                "value": payload.value,
                "description": payload.description,
            },
        }

    logger.info("Defence Atlas FastAPI application created with 8 endpoints.")
    return app

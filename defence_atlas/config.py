"""
defence_atlas/config.py — All tunable parameters for Defence Atlas.

No level bound or validation limit should be hardcoded in a graph module.
Every default lives here so that calibration changes are a single-file diff.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class DefenceAtlasConfig:
    """
    Immutable configuration for the Defence Atlas network layer.

    Override by constructing a new DefenceAtlasConfig with the desired values.
    """

    # ── Network filter ────────────────────────────────────────────────────────
    default_upstream_levels: int = 1
    # Hops toward consumers (who the selected company supplies).

    default_downstream_levels: int = 3
    # Hops toward suppliers (who supplies the selected company), down to
    # raw-material providers. Three tiers covers producer → tier-1 → tier-2 → material.

    ui_min_levels: int = 1
    ui_max_levels: int = 5
    # Range of the settings sliders. The filter itself accepts any
    # non-negative bound, including 0.

    # ── Dependency validation ─────────────────────────────────────────────────
    link_value_min: int = 1
    link_value_max: int = 10
    # Dependency strength scale used by the admin forms.

    # ── Search ────────────────────────────────────────────────────────────────
    search_result_limit: int = 10

    # ── Admin auth ────────────────────────────────────────────────────────────
    admin_api_key_env: str = "ADMIN_API_KEY"
    dev_admin_api_key: str = "dev-admin-key"
    # Fallback key when ADMIN_API_KEY is unset (local development only).

    # ── Data paths ────────────────────────────────────────────────────────────
    seed_network_path: str = os.path.join(
        os.path.dirname(__file__), "data", "seed_network.json"
    )
    # Bundled snapshot of the European defence supply chain.

    def admin_api_key(self) -> str:
        """Return the expected admin bearer token for this process."""
        return os.environ.get(self.admin_api_key_env) or self.dev_admin_api_key


# Singleton default — import this everywhere instead of constructing anew.
DEFAULT_CONFIG = DefenceAtlasConfig()

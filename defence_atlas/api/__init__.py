"""
defence_atlas.api — FastAPI endpoints over the supply network.

Modules:
    endpoints — create_app(): network, filter, search and admin routes.
"""

"""API routers package.

Manifesto:
    Each router module owns one API surface and delegates to the wired
    ``TileHub`` for behaviour.

Tags:
    tilehub, api, routers, REST
"""

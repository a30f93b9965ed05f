"""
HTTP surface for tilehub.

Exposes ``POST {prefix}/data-hub`` plus read-only introspection endpoints.

Tags:
    tilehub, api, FastAPI
"""

from tilehub.api.app import create_app

__all__ = ["create_app"]

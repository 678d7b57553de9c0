"""
REST transport for langfactory.

Start with ``langfactory serve start`` or mount :func:`create_app` in any
ASGI server.
"""

from langfactory.api.app import create_app

__all__ = ["create_app"]

"""ASGI middleware and exception handlers for the langfactory API."""

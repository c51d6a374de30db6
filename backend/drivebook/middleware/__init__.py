"""ASGI middleware for request tracking."""

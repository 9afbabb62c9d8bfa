"""
Project package for the messaging backend.

Holds the settings modules, the ASGI entry point and the project-level
HTTP and WebSocket routing.
"""

"""ASGI request handling, response negotiation and server startup."""

"""Local HTTP endpoints served alongside the client."""

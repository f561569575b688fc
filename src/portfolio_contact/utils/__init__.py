"""Request helpers shared by the HTTP endpoints."""

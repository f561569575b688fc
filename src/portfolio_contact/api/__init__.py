"""HTTP API for the portfolio contact service."""

"""Core configuration and error taxonomy."""

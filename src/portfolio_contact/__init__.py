"""Portfolio contact form service."""

"""Core infrastructure: errors, logging, metrics, caching."""

"""Request/response schemas and in-memory session types."""

"""Infrastructure adapters: database pool and repository implementations."""

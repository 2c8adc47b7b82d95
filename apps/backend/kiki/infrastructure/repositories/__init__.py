"""Repository implementations: postgres (production) and in_memory (tests/local)."""

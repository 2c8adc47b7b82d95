"""
Application layer: use cases and startup tasks (seeds).

Depends only on domain ports; infrastructure is injected by the container.
"""

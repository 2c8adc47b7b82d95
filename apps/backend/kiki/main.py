"""
Name: Backend ASGI Entrypoint (kiki.main)

Responsibilities:
  - Re-export the ASGI app for uvicorn/gunicorn (`kiki.main:app`)
  - Keep this module free of configuration and IO
"""

from kiki.api.main import app

__all__ = ["app"]

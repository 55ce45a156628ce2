"""
ASGI entry point for Family Feed API.

Re-exports the FastAPI app from src/api/main.py.
"""

from src.api.main import app

__all__ = ["app"]

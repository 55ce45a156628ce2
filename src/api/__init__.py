"""
Family Feed API module.

Provides FastAPI HTTP endpoints for family members and their important dates.
"""

from src.api.main import app, run_server

__all__ = ["app", "run_server"]

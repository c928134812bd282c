"""
Famfin API package.

Provides the FastAPI application that fronts the family finance session
and data services.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]

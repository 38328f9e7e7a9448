"""
Auth API package.

Contains the registration, approval and session routes.
"""

from src.api.auth.routes import router

__all__ = ["router"]

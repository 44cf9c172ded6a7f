"""
FastAPI pin timeline service.

Provides the REST API for:
- /api/auth - OAuth login, sessions, handle setup
- /api/accounts - registration and profiles
- /api/follows - follow graph and account search
- /api/pins - pins and the timeline feed
- /api/admin - timeline rebuild
- GET /health - Service health check
"""

from src.api.app import create_app

__all__ = ["create_app"]

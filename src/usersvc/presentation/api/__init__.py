"""REST API presentation layer.

Structure:
    api/
    ├── app.py                # FastAPI application factory
    ├── dependencies.py       # Dependency injection
    ├── exception_handlers.py # Error envelope
    ├── middleware.py         # Body size cap and rate limiting
    ├── routers/              # API route handlers
    └── schemas/              # Pydantic request/response schemas
"""

from usersvc.presentation.api.app import create_app

__all__ = ["create_app"]

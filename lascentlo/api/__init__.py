"""
HTTP surface — FastAPI app, routers and wire models.

    from lascentlo.api import create_app

    app = create_app()            # or: uvicorn --factory lascentlo.api:create_app
"""

from lascentlo.api._deps import Services, build_services
from lascentlo.api._app import HTTP_STATUS, create_app

__all__ = ("Services", "build_services", "HTTP_STATUS", "create_app")

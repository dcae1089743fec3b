"""
Aniportal FastAPI application package
"""

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aniportal.config import Config
from aniportal.errors import AniportalError, NotFoundError
from aniportal.models import ErrorResponse
from aniportal.routes.root import router as root_router
from aniportal.routes.catalog import router as catalog_router
from aniportal.routes.search import router as search_router
from aniportal.routes.anime import router as anime_router
from aniportal.routes.genres import router as genres_router
from aniportal.routes.profile import router as profile_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize FastAPI app
    app = FastAPI(
        title=Config.TITLE,
        description=Config.DESCRIPTION,
        version=Config.VERSION,
        docs_url=Config.DOCS_URL,
        redoc_url=Config.REDOC_URL
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.ALLOW_ORIGINS,
        allow_credentials=Config.ALLOW_CREDENTIALS,
        allow_methods=Config.ALLOW_METHODS,
        allow_headers=Config.ALLOW_HEADERS,
    )

    # Include routers
    app.include_router(root_router)
    app.include_router(catalog_router)
    app.include_router(search_router)
    app.include_router(anime_router)
    app.include_router(genres_router)
    app.include_router(profile_router)

    # Exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        """Custom HTTP exception handler"""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                detail=str(exc.detail),
                error_type="HTTPException"
            ).model_dump(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(AniportalError)
    async def app_exception_handler(request, exc):
        """Errors that escaped a route; not-found stays a 404"""
        status_code = 404 if isinstance(exc, NotFoundError) else 502
        logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                detail=str(exc),
                error_type=type(exc).__name__
            ).model_dump()
        )

    return app

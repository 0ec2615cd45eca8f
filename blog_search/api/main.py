"""
FastAPI main application for the blog search backend.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .models import ErrorResponse
from .routes import router
from ..search.search_engine import SearchEngine
from ..storage.database import init_database
from config.search_config import (
    API_CONFIG,
    CONCURRENCY_CONFIG,
    DATABASE_PATH,
    ENVIRONMENT,
    DEBUG,
    configure_logging
)

logger = logging.getLogger('api')


# ============================================================================
# Application Factory
# ============================================================================

def create_app(db_path: Optional[str] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        db_path: SQLite database path (default DATABASE_PATH)

    Returns:
        FastAPI application
    """
    db_path = db_path or DATABASE_PATH

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Opens the article store and the search thread pool on startup and
        releases them on shutdown.
        """
        logger.info("Starting Blog Search API...")
        logger.info(f"Environment: {ENVIRONMENT}")
        logger.info(f"Debug mode: {DEBUG}")

        try:
            db = init_database(db_path)
        except Exception as e:
            logger.error(f"Failed to open article store at {db_path}: {e}")
            raise

        app.state.search_engine = SearchEngine(db)
        app.state.search_executor = ThreadPoolExecutor(
            max_workers=CONCURRENCY_CONFIG['search_thread_pool_size']
        )
        app.state.started_at = datetime.now()
        logger.info("API startup complete")

        yield

        logger.info("Shutting down Blog Search API...")
        app.state.search_executor.shutdown(wait=True)
        app.state.search_engine = None
        db.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Blog Search API",
        description="Ranked article search and recommendations",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url="/redoc" if DEBUG else None
    )

    # Blog frontend reads only
    app.add_middleware(
        CORSMiddleware,
        allow_origins=API_CONFIG["cors_origins"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/")
    async def root():
        """
        Root endpoint - API information.
        """
        return {
            "name": "Blog Search API",
            "version": "1.0.0",
            "endpoints": {
                "search": "/api/v1/articles",
                "article": "/api/v1/articles/{id}",
                "similar": "/api/v1/articles/{id}/similar",
                "sidebar": "/api/v1/sidebar",
                "health": "/api/v1/health"
            },
            "documentation": "/docs" if DEBUG else None
        }

    @app.exception_handler(404)
    async def not_found_handler(request, exc):
        """Handle 404 errors."""
        detail = getattr(exc, 'detail', None)
        if isinstance(detail, dict):
            content = detail
        else:
            content = ErrorResponse(
                error="Resource not found",
                code="NOT_FOUND",
                details={"path": str(request.url.path)}
            ).model_dump()
        return JSONResponse(status_code=404, content=content)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request, exc):
        """Pass route error bodies through unwrapped."""
        if isinstance(exc.detail, dict):
            # Already logged and shaped by the route
            return JSONResponse(status_code=exc.status_code, content=exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail), code="HTTP_ERROR").model_dump()
        )

    @app.exception_handler(500)
    async def internal_error_handler(request, exc):
        """Handle unexpected errors."""
        logger.error(f"Internal server error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Internal server error",
                code="INTERNAL_ERROR",
                details={"message": str(exc) if DEBUG else "An unexpected error occurred"}
            ).model_dump()
        )

    return app


configure_logging()
app = create_app()


# ============================================================================
# Development Server
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "blog_search.api.main:app",
        host=API_CONFIG["host"],
        port=API_CONFIG["port"],
        reload=DEBUG,
        log_level=API_CONFIG["log_level"]
    )

"""
Main FastAPI application for the SchoolHub backend
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import settings
from ..core.error_sink import ErrorLogSink
from ..logging import configure_logging, get_logger
from ..middleware import LoggingContextMiddleware
from ..store.base import EntityGateway
from ..store.factory import create_gateway, set_gateway
from ..store.sql import SqlEntityGateway

# Configure logging before creating logger
configure_logging(debug=settings.debug)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting SchoolHub API...", store_backend=settings.store_backend)

    gateway: EntityGateway = getattr(app.state, "gateway", None) or create_gateway()
    app.state.gateway = gateway
    app.state.error_sink = ErrorLogSink(gateway, enabled=settings.error_log_enabled)
    set_gateway(gateway)

    if isinstance(gateway, SqlEntityGateway):
        from ..database.connection import init_database, test_database_connection

        init_database()
        ok, error = await test_database_connection()
        if ok:
            logger.info("Database connection verified")
        else:
            logger.error("Database is not reachable", error=error)

    yield

    logger.info("Shutting down SchoolHub API...")
    await app.state.error_sink.drain()
    await gateway.close()
    set_gateway(None)


def create_app(gateway: EntityGateway | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Passing ``gateway`` skips backend construction (used by tests).
    """
    app = FastAPI(
        title="SchoolHub API",
        description="GraphQL backend for users, schools and students",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    if gateway is not None:
        app.state.gateway = gateway

    app.add_middleware(LoggingContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():  # pyright: ignore [reportUnusedFunction]
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    from ..graphql.schema import create_graphql_router, validate_schema

    logger.info("Validating GraphQL schema...")
    validate_schema()
    app.include_router(create_graphql_router(graphiql=settings.debug), prefix="")
    logger.info("GraphQL endpoint initialized successfully", endpoint="/graphql")

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "schoolhub.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )

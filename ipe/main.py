"""Ipê FastAPI application entry point.

Usage:
    python -m ipe.main [--host 0.0.0.0] [--port 8000]
"""

import argparse
import logging
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ipe.api.routes import auth, dashboard, files, parties, payables, property, setup
from ipe.models import Base
from ipe.services import engine
from ipe.services.config import get_settings
from ipe.services.errors import AppError, error_response
from ipe.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    # Startup: Initialize database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")
    yield
    logger.info("Application shutting down")


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.http_status} {exc.code}")
    return JSONResponse(status_code=exc.http_status, content=error_response(exc))


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.api_title,
        description="Payments backend for a property under sale: installments, rent and condo fees",
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.add_exception_handler(AppError, handle_app_error)

    app.include_router(auth.router)
    app.include_router(setup.router)
    app.include_router(parties.router)
    app.include_router(property.router)
    app.include_router(payables.installments_router)
    app.include_router(payables.rents_router)
    app.include_router(payables.condo_fees_router)
    app.include_router(files.router)
    app.include_router(dashboard.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Run the Ipê API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    settings = get_settings()
    setup_server_logging(settings.log_file, settings.log_level)
    logger.info(f"Starting Ipê API on {args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()

# Copyright 2025 thestill.me
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
FastAPI application factory for the Vial web server.

This module creates and configures the FastAPI application with:
- Dependency injection for services (same as CLI)
- Route registration for the admin, listener and cron APIs
- Middleware configuration
- Error handling that always answers with the JSON envelope

Usage:
    from vial.web.app import create_app
    app = create_app()
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..media import create_media_store
from ..media.local_store import MEDIA_URL_PATH, LocalMediaStore
from ..media.store import MediaStore
from ..repositories.database import Repositories, create_repositories
from ..services import AuthService, EpisodeService, ListenerService, MailService, StatsService
from ..utils.config import Config, load_config
from ..utils.exceptions import VialError
from .dependencies import AppState
from .middleware.logging_middleware import LoggingMiddleware
from .responses import error_response
from .routes import audio, auth, cron, dashboard, episodes, health, listeners

logger = logging.getLogger(__name__)


def _validation_message(errors) -> str:
    """First validation error as "field: message"."""
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    message = first.get("msg", "Invalid value")
    return f"{'.'.join(location)}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    """Map every error to the failure envelope."""

    @app.exception_handler(VialError)
    async def vial_error_handler(request: Request, exc: VialError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=exc.status_code, content=error_response(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error_response(_validation_message(exc.errors())))

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content=error_response(_validation_message(exc.errors())))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} raised {type(exc).__name__}: {exc}")
        return JSONResponse(status_code=500, content=error_response("Internal server error"))


def create_app(
    config: Optional[Config] = None,
    repositories: Optional[Repositories] = None,
    media_store: Optional[MediaStore] = None,
    mailer: Optional[MailService] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Optional Config object. If not provided, loads from environment.
        repositories: Pre-built repositories (default: SQLite at config.database_path)
        media_store: Pre-built media store (default: chosen by MEDIA_BACKEND)
        mailer: Pre-built mail service (default: SMTP from config)
        clock: Current-time source for publish decisions (default: UTC now)

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = load_config()

    repositories = repositories or create_repositories(config)
    media_store = media_store or create_media_store(config)
    mailer = mailer or MailService(config)

    app_state = AppState(
        config=config,
        repositories=repositories,
        media_store=media_store,
        episode_service=EpisodeService(
            repositories.episode,
            media_store,
            timezone=config.timezone,
            clock=clock,
            max_audio_bytes=config.max_audio_bytes,
        ),
        listener_service=ListenerService(repositories.listener),
        auth_service=AuthService(config, repositories.listener, mailer),
        stats_service=StatsService(repositories.episode, repositories.listener),
        mail_service=mailer,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup/shutdown."""
        logger.info("Starting Vial web server...")
        logger.info(f"Database: {config.database_path}")
        logger.info(f"Media backend: {config.media_backend}")
        yield
        logger.info("Shutting down Vial web server...")

    app = FastAPI(
        title="Vial",
        description="Podcast publishing and listening platform",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.app_state = app_state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    register_exception_handlers(app)

    # Register routes
    app.include_router(health.router, tags=["health"])
    app.include_router(episodes.router, prefix="/api/episodes", tags=["episodes"])
    app.include_router(audio.router, prefix="/api/audio", tags=["audio"])
    app.include_router(cron.router, prefix="/api/cron", tags=["cron"])
    app.include_router(listeners.router, prefix="/api/listeners", tags=["listeners"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])

    # Local audio is served by the app itself
    if isinstance(media_store, LocalMediaStore):
        app.mount(MEDIA_URL_PATH, StaticFiles(directory=str(media_store.base_path)), name="media")
        logger.info(f"Serving local media from: {media_store.base_path}")

    logger.info("FastAPI application created successfully")

    return app

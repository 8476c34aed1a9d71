"""
Application factory.

Wires the ambient stack around the persistence layer: logging from settings,
the request-id middleware and the error handlers. CRUD routes are mounted by
the caller.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from jobboard.api.v1.error_handlers import register_exception_handlers
from jobboard.config.settings import Settings, get_settings
from jobboard.core.dependencies import dispose_engine
from jobboard.core.logging import RequestIDMiddleware, setup_logging
from jobboard.core.logging.utils import get_project_name, get_project_version


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await dispose_engine()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(title=get_project_name(), version=get_project_version(), lifespan=lifespan)
    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)
    return app

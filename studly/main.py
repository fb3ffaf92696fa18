import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from studly.api.handlers import register_exception_handlers
from studly.api.routes import answer_options, classes, exercises, lessons, sub_lessons, subjects, users
from studly.core.config import get_settings
from studly.db.base import Base
from studly.db.session import engine

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class UTF8Middleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        if response.headers.get("content-type", "").startswith("application/json"):
            response.headers["Content-Type"] = "application/json; charset=utf-8"
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.project_name, lifespan=lifespan)
    app.add_middleware(UTF8Middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    for module in (users, classes, subjects, lessons, sub_lessons, exercises, answer_options):
        app.include_router(module.router, prefix=settings.api_prefix)

    @app.get(settings.api_prefix)
    def api_root():
        return {"success": True, "message": f"{settings.project_name} API"}

    return app


app = create_app()

# backend/src/main.py
"""
Главный файл FastAPI приложения
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from shared.config import Config, config
from .database import create_engine, create_session_factory, create_tables
from .exceptions import ReviewServiceError
from .routers import reviews_router, moderation_router, wallets_router, health_router
from .services import Services, build_services

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ReviewServiceError)
    async def review_error_handler(request: Request, exc: ReviewServiceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "reason": "validation_error",
                "message": "Invalid request",
                "errors": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()],
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception(f"Database error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"reason": "server_error", "message": "Internal server error"},
        )


def create_app(
    settings: Optional[Config] = None,
    services: Optional[Services] = None,
    engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    """Собрать приложение; в тестах сюда передаются свой движок, часы и ГСЧ"""
    settings = settings or config
    engine = engine or create_engine(settings)
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Запуск приложения...")
        await create_tables(engine)
        logger.info("Таблицы базы данных созданы")
        yield
        logger.info("Остановка приложения...")
        await engine.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Доверие к отзывам, награды и модерация",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        user = request.headers.get("x-user-id", "anon")
        logger.info(f"[{user}] {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response

    register_exception_handlers(app)

    prefix = settings.API_PREFIX
    app.include_router(reviews_router, prefix=prefix)
    app.include_router(moderation_router, prefix=prefix)
    app.include_router(wallets_router, prefix=prefix)
    app.include_router(health_router, prefix=prefix)

    @app.get("/")
    async def root():
        return {"message": f"{settings.APP_NAME} is running", "docs": "/docs", "version": "1.0.0"}

    return app


def configure_logging(settings: Config = config) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

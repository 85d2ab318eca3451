from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from kanban.db import init_db
from kanban.core import get_settings
from kanban.core.exception_handlers import register_exception_handlers
from kanban.core.middleware import RequestLoggingMiddleware
from kanban.api.v1 import api_router
from kanban.logs.server_log import api_logger

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        await init_db()
        api_logger.info("Database initialized successfully")
    except Exception as e:
        api_logger.error(f"Error initializing database: {e}")
        raise

    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for Kanban boards with sharing, ordered columns and cards",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/")
async def root(request: Request):
    """Health check endpoint"""
    api_logger.info(f"Received health check request: {request.method} {request.url}")
    return {"message": f"{settings.PROJECT_NAME} is running"}


if __name__ == "__main__":
    import uvicorn

    api_logger.info("Сервер запускается на http://0.0.0.0:8000")

    uvicorn.run(
        "kanban.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )

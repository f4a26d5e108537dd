from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from api.api import api_router
from app.db.database import init_models
from app.schemas.error import ErrorResponse
from core.config import configs
from core.exceptions import TripMuseError
from core.logger import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🔧 Initializing Trip Engine...")
    await init_models()
    logger.info("✅ Trip Engine initialized.")
    yield
    # Shutdown
    logger.info("🛑 Shutting down Trip Engine...")

app = FastAPI(
    title=configs.PROJECT_NAME,
    description="TripMuse trip detection and recommendation engine",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS (Allow all for development env)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TripMuseError)
async def tripmuse_error_handler(request: Request, exc: TripMuseError):
    if exc.status_code >= 500:
        logger.error(f"💥 {request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(code=exc.code, message=str(exc) or exc.code).model_dump(),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"💥 Unexpected error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(code="INTERNAL_ERROR", message="An unexpected error occurred").model_dump(),
    )


app.include_router(api_router, prefix="/api/v1")
app.mount("/metrics", make_asgi_app())

@app.get("/")
async def root():
    return {"message": "TripMuse Trip Engine Running"}

@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8001, reload=True)

"""
FastAPI application - entry point of the auto-recognition service
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from autorecognition.api.dependencies import (
    get_ocr_engine,
    get_ocr_executor,
    get_orchestrator,
    get_trigger_source,
)
from autorecognition.api.v1.router import api_router
from autorecognition.config import get_settings
from autorecognition.core.logging import setup_logging, get_logger
from autorecognition.observability.metrics import metrics_endpoint

# Configure logging on import
settings = get_settings()
setup_logging(log_level=settings.LOG_LEVEL, is_debug=settings.DEBUG)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifecycle events
    Wires the orchestrator to its trigger source on startup and stops it on shutdown
    """
    # Startup
    logger.info(
        "Starting auto-recognition service",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        ocr_engine=settings.OCR_ENGINE.value,
        debug=settings.DEBUG
    )

    orchestrator = get_orchestrator()
    orchestrator.attach_trigger_source(get_trigger_source())

    yield

    # Shutdown
    logger.info("Shutting down auto-recognition service")
    await orchestrator.shutdown()
    get_ocr_executor().shutdown(wait=False)
    get_ocr_engine().cleanup()


# Create the FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Automatic expense recognition from payment screenshots",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root():
    """Redirect the root to the docs"""
    return RedirectResponse(url="/docs")


@app.get("/ping", include_in_schema=False)
async def ping():
    """Simple ping endpoint"""
    return {"status": "pong"}


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """prometheus metrics endpoint"""
    return metrics_endpoint()


if __name__ == "__main__":
    import uvicorn

    logger.info(
        "Starting server",
        host=settings.HOST,
        port=settings.PORT
    )

    uvicorn.run(
        "autorecognition.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )

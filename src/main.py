"""
Coderun Sandbox Service - On-demand code execution in ephemeral sandboxes
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
import uvicorn

from core.config import get_settings
from core.error_tracking import ErrorTracker, capture_exception
from core.languages import build_language_registry
from core.provider_setup import create_provider
from services.execution_service import ExecutionService
from api import execute

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""

    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    ErrorTracker.initialize(settings.posthog_api_key, settings.posthog_host)

    languages = build_language_registry()
    provider = create_provider(settings)
    logger.info(f"Using {provider.kind.value} provider with {len(languages)} languages")

    app.state.languages = languages
    app.state.provider = provider
    app.state.execution_service = ExecutionService(provider, languages, settings)

    yield

    # Shutdown
    logger.info("Shutting down sandbox service")

    try:
        await provider.cleanup()
    except Exception as e:
        logger.error(f"Provider cleanup failed: {e}")

    ErrorTracker.shutdown()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

# Mount Prometheus metrics
if settings.enable_metrics:
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

# Include routers
app.include_router(execute.router, prefix="/api/v1")

# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    capture_exception(exc, properties={"path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc),
            "details": f"{type(exc).__name__}: {exc}",
        }
    )

# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "provider": settings.provider,
        "endpoints": {
            "run": "/api/v1/execute/run",
            "command": "/api/v1/execute/command",
            "install": "/api/v1/execute/install",
            "languages": "/api/v1/execute/languages",
            "health": "/health",
            "metrics": "/metrics" if settings.enable_metrics else None,
            "docs": "/docs" if settings.debug else None,
        }
    }

# Health check
@app.get("/health")
async def health(request: Request):
    """Health check endpoint"""
    provider = getattr(request.app.state, "provider", None)

    provider_status = None
    if provider is not None:
        try:
            provider_status = (await provider.health_check()).to_dict()
        except Exception as e:
            logger.error(f"Provider health check failed: {e}")
            provider_status = {"healthy": False, "message": str(e)}

    healthy = provider_status is not None and provider_status["healthy"]

    return {
        "status": "healthy" if healthy else "degraded",
        "service": "sandbox",
        "version": settings.app_version,
        "provider": provider_status,
    }

def main():
    """Main entry point"""
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=settings.workers if not settings.debug else 1,
        log_level="info" if not settings.debug else "debug",
    )

if __name__ == "__main__":
    main()

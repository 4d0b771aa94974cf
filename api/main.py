from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from common.core.config import settings
from common.core.exceptions import AppException
from common.core.telemetry import _initialize_telemetry, get_logger
from common.providers.cluster.factory import create_cluster_client
from api.error_handlers import (
    app_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from api.routes.router import api_router
from internal.routes.router import internal_router
from packages.jobs.services.monitor_registry import MonitorRegistry

_initialize_telemetry()

# Get logger
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Kubernetes Job Trigger API...")
    if getattr(app.state, "cluster_client", None) is None:
        # Raises ClusterConfigError, which aborts startup
        app.state.cluster_client = create_cluster_client(settings)
    app.state.monitor_registry = MonitorRegistry.from_settings(
        app.state.cluster_client, settings
    )
    logger.info("Kubernetes client initialized")
    yield
    # Shutdown
    logger.info("Shutting down application...")
    await app.state.monitor_registry.shutdown(settings.monitor_shutdown_timeout_seconds)


# Only expose OpenAPI docs in local development
docs_url = "/docs" if settings.docs_enabled else None
redoc_url = "/redoc" if settings.docs_enabled else None
openapi_url = "/openapi.json" if settings.docs_enabled else None

app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=redoc_url,
    openapi_url=openapi_url,
)
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Instrument FastAPI with OpenTelemetry
FastAPIInstrumentor.instrument_app(app)

# Add gzip compression middleware
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count", "X-Limit", "X-Offset"],
)

# Probes first, then the job API; both at root level
app.include_router(internal_router)
app.include_router(api_router)

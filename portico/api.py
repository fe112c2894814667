"""FastAPI REST API exposing portico builds."""

import asyncio
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from . import __version__
from .builder import AppServiceBuild
from .errors import LookupFailedError, NoRoutingRuleError, NotFoundError, PorticoError
from .logging_config import get_logger, log_api_request, log_api_response, log_function_entry, log_function_exit
from .models import BuildConfig, ReplicationType
from .serialization import build_result_to_manifests, to_manifest
from .store import ServiceStore

logger = get_logger(__name__)

app = FastAPI(
    title="Portico",
    description="Project tenant services into Kubernetes networking resources",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests and responses."""
    start_time = asyncio.get_event_loop().time()

    log_api_request(logger, request.method, str(request.url.path),
                   client_ip=request.client.host if request.client else "unknown")

    response = await call_next(request)

    duration = asyncio.get_event_loop().time() - start_time

    log_api_response(logger, request.method, str(request.url.path),
                    response.status_code,
                    duration_ms=round(duration * 1000, 2))

    return response


@app.exception_handler(PorticoError)
async def portico_error_handler(request: Request, exc: PorticoError):
    """Map build errors to HTTP status codes."""
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, NoRoutingRuleError):
        status_code = 422
    elif isinstance(exc, LookupFailedError):
        status_code = 502
    else:
        status_code = 500
    logger.warning("Build request failed",
                  path=str(request.url.path),
                  status_code=status_code,
                  error_type=type(exc).__name__,
                  error=str(exc))
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": type(exc).__name__})


# Global build context
store: Optional[ServiceStore] = None
build_config: Optional[BuildConfig] = None


def get_store() -> ServiceStore:
    """Get the global ServiceStore instance."""
    if store is None:
        raise HTTPException(status_code=503, detail="Build store not initialized")
    return store


def initialize_builder(service_store: ServiceStore, config: BuildConfig) -> None:
    """Initialize the global store and build configuration."""
    log_function_entry(logger, "initialize_builder", annotation_prefix=config.annotation_prefix)
    global store, build_config
    store = service_store
    build_config = config
    logger.info("Builder initialized",
               ex_domain=config.ex_domain,
               network_mode=config.network_mode,
               annotation_prefix=config.annotation_prefix)
    log_function_exit(logger, "initialize_builder", status="success")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "portico"}


@app.get("/config")
async def get_config():
    """Get the current build configuration."""
    get_store()
    return build_config.model_dump()


@app.post("/services/{service_id}/build")
async def build_service(
    service_id: str,
    replication: ReplicationType = Query(ReplicationType.STATELESS, description="Replication type"),
    event_id: str = Query("", description="Event id to label outer services with"),
):
    """Build the services, ingresses and secrets of a tenant service."""
    builder = AppServiceBuild.from_store(service_id, replication, get_store(), build_config, event_id=event_id)
    result = builder.build()
    logger.debug("Returning build result",
                service_id=service_id,
                services=len(result.services),
                ingresses=len(result.ingresses),
                secrets=len(result.secrets))
    return build_result_to_manifests(result)


@app.post("/services/{service_id}/ports/{port}/build")
async def build_service_port(
    service_id: str,
    port: int,
    outer: bool = Query(False, description="Build the outer service instead of the inner one"),
):
    """Build the inner or outer service of a single port."""
    builder = AppServiceBuild.from_store(service_id, ReplicationType.STATELESS, get_store(), build_config)
    return to_manifest(builder.build_on_port(port, outer))

"""FastAPI application for the Insight Commons service."""

import contextlib
import logging
from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..domain.errors import (
    ConflictError,
    ForbiddenError,
    InsightCommonsError,
    InternalError,
    InvalidInputError,
    NotFoundError,
)
from ..infrastructure.dependencies import get_service_container
from .endpoints import contributions, domains, health, search, trust, validations

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

STATUS_CODES: Dict[Type[InsightCommonsError], int] = {
    InvalidInputError: 400,
    ForbiddenError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    InternalError: 500,
}


def status_code_for(error: InsightCommonsError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 500


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the service container with the app and close its clients afterwards."""
    container = get_service_container()
    logging.getLogger().setLevel(container.settings.log_level)
    await container.startup()

    yield  # Application runs here

    await container.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Insight Commons API",
    description="Retrieval and trust ranking for agent-contributed insights",
    version="0.1.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InsightCommonsError)
async def domain_error_handler(request: Request, exc: InsightCommonsError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": InvalidInputError.code,
                "message": "Request validation failed",
                "details": {"errors": errors},
            }
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": InternalError.code, "message": "Internal server error"}},
    )


# Include routers
app.include_router(health.router)
app.include_router(search.router)
app.include_router(contributions.router)
app.include_router(validations.router)
app.include_router(trust.router)
app.include_router(domains.router)

"""FastAPI server exposing the catalog import to the admin dashboard."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Header, Request, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .services.import_service import ImportService
from .middleware.request_validator import ImportRequestValidator
from .utils.logger import get_server_logger
from .utils.config import get_config
from .utils.exceptions import ConfigurationError, RequestAuthorizationError

config = get_config()
logger = get_server_logger()
request_validator = ImportRequestValidator()


class CatalogImportBody(BaseModel):
    """Request body; shape is validated again by the importer."""
    target_url: str = ""
    credential_key: str = ""
    credential_secret: str = ""
    overwrite_existing: bool = False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup / shutdown of the application."""
    logger.info("=" * 60)
    logger.info("Catalog Sync Server Starting")
    logger.info("=" * 60)
    logger.info(f"Environment:          {config.env.environment}")
    logger.info(f"Port:                 {config.env.port}")
    logger.info(f"Token validation:     {config.server.require_token}")
    logger.info("=" * 60)

    yield

    logger.info("Catalog Sync Server shut down.")


app = FastAPI(
    title="Catalog Sync Server",
    description="On-demand WooCommerce catalog imports",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Catalog Sync Server",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": config.env.environment
    }


@app.post("/tenants/{tenant_id}/catalog-imports")
async def import_catalog(
    tenant_id: str,
    body: CatalogImportBody,
    x_import_token: Optional[str] = Header(default=None),
):
    """
    Run a full catalog import for ``tenant_id`` and return its outcome.

    Partial failures still answer 200 with ``success: true``; fatal
    failures answer 422 (bad input) or 502 (remote store unusable).
    """
    try:
        request_validator.validate_token(x_import_token)
    except RequestAuthorizationError as e:
        logger.error(f"Import request rejected: {e.message}")
        raise HTTPException(status_code=401, detail=e.message)
    except ConfigurationError as e:
        logger.error(f"Import endpoint misconfigured: {e.message}")
        raise HTTPException(status_code=503, detail=e.message)

    logger.info(f"Import requested for tenant {tenant_id} (overwrite={body.overwrite_existing})")

    outcome = await ImportService().import_catalog(tenant_id, body.model_dump())

    if outcome.success:
        status_code = 200
    elif outcome.error_type == "CatalogValidationError":
        status_code = 422
    elif outcome.error_type in ("CatalogConnectionError", "CatalogFormatError"):
        status_code = 502
    else:
        status_code = 500

    return JSONResponse(status_code=status_code, content=outcome.to_dict())


# ------------------------------------------------------------------
# Exception handlers
# ------------------------------------------------------------------

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Custom HTTP exception handler."""
    logger.warning(f"HTTP {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """General exception handler for unexpected errors."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if not config.is_production else "An error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "catalog_sync.server:app",
        host="0.0.0.0",
        port=config.env.port,
        reload=not config.is_production
    )

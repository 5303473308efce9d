"""FastAPI application factory and configuration."""

import logging
import secrets
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """
    Middleware to enforce Bearer token authentication.

    If a bearer token is configured, all requests must include a valid
    Authorization header with the Bearer token, except for excluded paths.
    Helipad sends its webhook token the same way.
    """

    # Paths that are always public (no authentication required)
    EXCLUDED_PATHS = {
        "/docs",
        "/redoc",
        "/openapi.json",
        "/metrics",
        "/health",
    }

    def __init__(self, app, bearer_token: Optional[str] = None):
        """
        Initialize the Bearer authentication middleware.

        Args:
            app: The FastAPI application
            bearer_token: The configured bearer token (if None, auth is disabled)
        """
        super().__init__(app)
        self.bearer_token = bearer_token
        self.auth_enabled = bearer_token is not None

    @staticmethod
    def _unauthorized(detail: str) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Authentication required", "detail": detail},
            headers={"WWW-Authenticate": "Bearer"},
        )

    async def dispatch(self, request: Request, call_next):
        """
        Process each request and validate Bearer token if configured.

        Args:
            request: The incoming request
            call_next: The next middleware/handler in the chain

        Returns:
            Response from the next handler or 401 error
        """
        if not self.auth_enabled or request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            logger.warning(f"Missing Authorization header for {request.url.path}")
            return self._unauthorized("Missing Authorization header")

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            logger.warning(f"Invalid Authorization header format for {request.url.path}")
            return self._unauthorized(
                "Invalid Authorization header format. Expected: 'Bearer <token>'"
            )

        # Constant-time comparison
        if not secrets.compare_digest(parts[1], self.bearer_token):
            logger.warning(f"Invalid bearer token for {request.url.path}")
            return self._unauthorized("Invalid bearer token")

        return await call_next(request)


def create_app(
    title: str = "BoostBot",
    version: str = "1.0.0",
    enable_metrics: bool = True,
    bearer_token: Optional[str] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        title: API title for OpenAPI documentation
        version: API version
        enable_metrics: Whether to enable Prometheus metrics
        bearer_token: Optional bearer token for API authentication

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=title,
        version=version,
        description="""
# BoostBot

Receives Helipad payment webhooks and posts each boost to Nostr once.

Helipad delivers one webhook per payment split. Splits of the same boost are
grouped into a session and posted after the fee-bearing split has been quiet
for the grace window. Near-duplicate posts are suppressed.

## Authentication

When a bearer token is configured every endpoint except `/health`,
`/metrics` and the docs requires an `Authorization: Bearer <token>` header.
Configure the same token in Helipad's webhook settings.
        """,
        license_info={
            "name": "MIT",
        },
        openapi_tags=[
            {
                "name": "webhook",
                "description": "Helipad webhook receiver",
            },
            {
                "name": "health",
                "description": "Health check endpoints for monitoring system status",
            },
            {
                "name": "sessions",
                "description": "In-flight boost sessions",
            },
        ],
    )

    # =========================================================================
    # Bearer Authentication Middleware
    # =========================================================================
    if bearer_token:
        app.add_middleware(BearerAuthMiddleware, bearer_token=bearer_token)
        logger.info("Bearer token authentication enabled")
    else:
        logger.info("Bearer token authentication disabled - API is public")

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors."""
        errors = []
        for error in exc.errors():
            error_dict = {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            if "input" in error:
                error_dict["input"] = str(error["input"])
            errors.append(error_dict)

        logger.warning(f"Validation error on {request.url}: {len(errors)} error(s)")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "Validation error",
                "detail": errors,
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error(f"Unexpected error on {request.url}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "detail": str(exc) if logger.isEnabledFor(logging.DEBUG) else None,
            },
        )

    # =========================================================================
    # Routers
    # =========================================================================

    from .routes import health, sessions, webhook

    app.include_router(webhook.router, tags=["webhook"])
    app.include_router(health.router, tags=["health"])
    app.include_router(sessions.router, prefix="/api/v1", tags=["sessions"])

    # =========================================================================
    # Prometheus Metrics
    # =========================================================================

    if enable_metrics:
        instrumentator = Instrumentator(
            should_group_status_codes=True,
            should_ignore_untemplated=True,
            should_respect_env_var=False,
            should_instrument_requests_inprogress=True,
            excluded_handlers=["/metrics"],
            inprogress_name="boostbot_http_inprogress",
            inprogress_labels=True,
        )
        instrumentator.instrument(app).expose(app, endpoint="/metrics")
        logger.info("Prometheus metrics enabled at /metrics")

    logger.info(f"FastAPI application created: {title} v{version}")

    return app

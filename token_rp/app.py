# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""FastAPI application: a single catch-all proxy route."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from token_rp_logging import Logger, create_logger

from . import __version__
from .errors import AuthenticationError
from .forwarder import Forwarder
from .oidc_client import ProviderConfigSync
from .pipeline import AuthenticationPipeline


def create_app(
    pipeline: AuthenticationPipeline,
    forwarder: Forwarder,
    sync: Optional[ProviderConfigSync] = None,
    logger: Optional[Logger] = None,
) -> FastAPI:
    """Create the proxy application.

    Args:
        pipeline: Authentication pipeline run for every request
        forwarder: Sends rewritten requests to the backend
        sync: Background provider config refresh, started with the app
        logger: Logger (default: stdout logger)

    Returns:
        FastAPI application
    """
    logger = logger or create_logger("app")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting token-rp", version=__version__, proxy_url=forwarder.proxy_url)
        if sync is not None:
            sync.start()

        yield

        logger.info("Shutting down token-rp")
        if sync is not None:
            sync.stop()
        await forwarder.aclose()

    # Every path belongs to the backend, so no docs or OpenAPI routes
    app = FastAPI(
        title="token-rp",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    async def proxy(request: Request) -> Response:
        try:
            authorization = await run_in_threadpool(
                pipeline.authenticate, request.url.path, request.headers
            )
        except AuthenticationError as e:
            logger.warning(
                "Request rejected",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                detail=str(e),
            )
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": str(e)},
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await forwarder.forward(request, authorization)

    # No method list: WebDAV and extension methods reach the backend too
    app.add_route("/{path:path}", proxy, include_in_schema=False)

    return app

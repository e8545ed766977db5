from contextlib import asynccontextmanager
from typing import Optional
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import our custom modules
from scribe_relay.core.config import Settings, get_settings, validate_relay_settings
from scribe_relay.core.logging_config import configure_logging
from scribe_relay.core.security import mask_credential
from scribe_relay.routes.relay import create_router
from scribe_relay.services.relay_gateway import RelayGateway, METHOD_NOT_ALLOWED_MESSAGE

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Relay settings; the process-wide settings when omitted
        transport: Outbound transport override, used by tests

    Returns:
        FastAPI app serving only the two relay paths

    Raises:
        ValueError: If the upstream credential is not configured
    """
    settings = settings or get_settings()
    validate_relay_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.UPSTREAM_TIMEOUT_SECONDS),
            transport=transport,
        )
        app.state.gateway = RelayGateway(settings, client)
        logger.info(
            f"Relay started: upstream={settings.UPSTREAM_BASE_URL} "
            f"credential={mask_credential(settings.API_KEY)} environment={settings.ENVIRONMENT}"
        )
        try:
            yield
        finally:
            await client.aclose()
            logger.info("Relay stopped")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Relay that forwards clinical transcripts and audio to the transcript processor",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return JSONResponse(
                status_code=405,
                content={"error": METHOD_NOT_ALLOWED_MESSAGE},
                headers={"Allow": "POST"},
            )
        return await http_exception_handler(request, exc)

    # Include routers
    app.include_router(create_router(settings))

    return app


def run(host: Optional[str] = None, port: Optional[int] = None, reload: Optional[bool] = None) -> None:
    import uvicorn
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "scribe_relay.main:create_app",
        factory=True,
        host=host or settings.HOST,
        port=port or settings.PORT,
        reload=(not settings.is_production) if reload is None else reload,
    )


if __name__ == "__main__":
    run()

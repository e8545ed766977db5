from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import logging

from scribe_relay.core.config import Settings
from scribe_relay.core.security import is_client_credential_header
from scribe_relay.services.relay_gateway import RelayGateway, RelayResult

# Configure logging
logger = logging.getLogger(__name__)


def get_gateway(request: Request) -> RelayGateway:
    return request.app.state.gateway


def _note_client_credentials(request: Request) -> None:
    # Only the configured credential is ever sent upstream
    for name in request.headers.keys():
        if is_client_credential_header(name):
            logger.warning(f"Ignoring client-supplied {name} header")


def _to_response(result: RelayResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.payload)


def create_router(settings: Settings) -> APIRouter:
    """
    Build the relay router with its two paths taken from the given settings.

    Args:
        settings: Relay settings naming RELAY_PATH and RELAY_AUDIO_PATH

    Returns:
        APIRouter with one POST route per relay path
    """
    router = APIRouter()

    # --- Router Endpoints ---

    @router.post(settings.RELAY_PATH)
    async def relay_transcript(
        request: Request,
        gateway: RelayGateway = Depends(get_gateway),
    ) -> JSONResponse:
        """
        Relay a JSON transcript body ({"transcript": "..."}) to the upstream
        transcript processor. The body is not inspected here.
        """
        _note_client_credentials(request)
        body = await request.body()
        result = await gateway.relay_transcript(body, request.headers.get("content-type"))
        return _to_response(result)

    @router.post(settings.RELAY_AUDIO_PATH)
    async def relay_audio(
        request: Request,
        gateway: RelayGateway = Depends(get_gateway),
    ) -> JSONResponse:
        """
        Relay a multipart audio upload to the upstream transcription endpoint,
        boundary and all.
        """
        _note_client_credentials(request)
        body = await request.body()
        result = await gateway.relay_audio(body, request.headers.get("content-type"))
        return _to_response(result)

    return router

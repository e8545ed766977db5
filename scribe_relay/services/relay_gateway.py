from typing import Dict, Any, NamedTuple, Optional
import logging

import httpx

from scribe_relay.core.config import Settings
from scribe_relay.core.security import credential_headers

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"
METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"


class RelayResult(NamedTuple):
    status_code: int
    payload: Any


class RelayGateway:
    """
    Forwards one inbound request to the upstream processing service and
    translates the outcome into the client-facing response.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    def error_body(self, exc: Exception) -> Dict[str, Any]:
        """
        Build the 500 body, exposing exception detail only outside production.

        Args:
            exc: The failure raised while reaching or reading the upstream

        Returns:
            Dict with "error" and, in non-production, "detail"
        """
        body: Dict[str, Any] = {"error": INTERNAL_ERROR_MESSAGE}
        if not self.settings.is_production:
            body["detail"] = str(exc) or exc.__class__.__name__
        return body

    async def forward(self, upstream_path: str, body: bytes, content_type: Optional[str]) -> RelayResult:
        """
        Make exactly one upstream call carrying the inbound body unchanged.

        Args:
            upstream_path: Upstream endpoint path for this input mode
            body: Raw inbound request body
            content_type: Inbound Content-Type, multipart boundary included

        Returns:
            RelayResult with the upstream status and parsed JSON body, or the
            gateway's own 500 shape on transport or parse failure
        """
        url = self.settings.upstream_url(upstream_path)
        headers = {}
        if content_type:
            headers["Content-Type"] = content_type
        headers.update(credential_headers(self.settings))

        try:
            logger.info(f"Relaying {len(body)} bytes to {upstream_path}")
            response = await self.client.post(url, content=body, headers=headers)
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error relaying to upstream {upstream_path}: {e.__class__.__name__}: {str(e)}")
            return RelayResult(500, self.error_body(e))

        logger.info(f"Upstream {upstream_path} responded {response.status_code}")
        return RelayResult(response.status_code, payload)

    async def relay_transcript(self, body: bytes, content_type: Optional[str]) -> RelayResult:
        return await self.forward(self.settings.UPSTREAM_TRANSCRIPT_PATH, body, content_type or "application/json")

    async def relay_audio(self, body: bytes, content_type: Optional[str]) -> RelayResult:
        return await self.forward(self.settings.UPSTREAM_AUDIO_PATH, body, content_type)

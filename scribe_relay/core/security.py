from scribe_relay.core.config import Settings
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Headers a caller might send that must never reach the upstream hop
CLIENT_CREDENTIAL_HEADERS = {"x-api-key", "authorization"}

def credential_headers(settings: Settings) -> Dict[str, str]:
    """
    Build the credential header for the outbound upstream call.

    The value comes only from process configuration; nothing the client
    sends can replace it.

    Args:
        settings: Relay settings holding the credential

    Returns:
        Dict with the single credential header

    Raises:
        ValueError: If no credential is configured
    """
    if not settings.API_KEY:
        raise ValueError("API_KEY is not configured")
    return {settings.API_KEY_NAME: settings.API_KEY}

def mask_credential(value: Optional[str]) -> str:
    """
    Render a credential safe for log output.

    Args:
        value: The raw credential, possibly missing

    Returns:
        str: "<unset>", "****", or the last four characters behind a mask
    """
    if not value:
        return "<unset>"
    if len(value) <= 8:
        return "****"
    return f"****{value[-4:]}"

def is_client_credential_header(name: str) -> bool:
    return name.lower() in CLIENT_CREDENTIAL_HEADERS

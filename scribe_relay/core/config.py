from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
import os
from dotenv import load_dotenv

# Load environment variables from .env if available (for local dev)
load_dotenv()

class Settings(BaseSettings):
    # API Info
    PROJECT_NAME: str = "Scribe Relay"
    RELAY_PATH: str = "/api/relay"
    RELAY_AUDIO_PATH: str = "/api/relay/audio"

    # Server Settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")

    # Upstream credential, injected at the outbound hop only
    API_KEY_NAME: str = os.getenv("API_KEY_NAME", "X-API-Key")
    API_KEY: Optional[str] = os.getenv("API_KEY")

    # Upstream processing service
    UPSTREAM_BASE_URL: str = os.getenv("UPSTREAM_BASE_URL", "https://scribe-checker.onrender.com")
    UPSTREAM_TRANSCRIPT_PATH: str = os.getenv("UPSTREAM_TRANSCRIPT_PATH", "/process_transcript")
    UPSTREAM_AUDIO_PATH: str = os.getenv("UPSTREAM_AUDIO_PATH", "/api/v1/transcribe_audio")
    UPSTREAM_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "120"))

    # Submission client
    RELAY_URL: str = os.getenv("RELAY_URL", "http://localhost:8000")
    CLIENT_TIMEOUT_SECONDS: float = float(os.getenv("CLIENT_TIMEOUT_SECONDS", "120"))
    MAX_AUDIO_BYTES: int = int(os.getenv("MAX_AUDIO_BYTES", str(25 * 1024 * 1024)))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == "production"

    def upstream_url(self, path: str) -> str:
        return self.UPSTREAM_BASE_URL.rstrip("/") + "/" + path.lstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings instance."""
    return Settings()


def validate_relay_settings(settings: Settings) -> None:
    """
    Check the values the relay cannot start without.

    Raises:
        ValueError: naming every missing environment variable
    """
    missing = []
    if not settings.API_KEY:
        missing.append("API_KEY")
    if not settings.UPSTREAM_BASE_URL:
        missing.append("UPSTREAM_BASE_URL")

    if missing:
        raise ValueError(f"Missing required environment variable(s): {', '.join(missing)}")

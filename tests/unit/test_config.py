"""Unit tests for settings and credential handling."""

import pytest

from scribe_relay.core.config import validate_relay_settings
from scribe_relay.core.errors import ErrorKind, ErrorSignal
from scribe_relay.core.security import credential_headers, is_client_credential_header, mask_credential
from tests.conftest import TEST_API_KEY, make_settings


class TestSettings:
    @pytest.mark.parametrize("environment, expected", [
        ("production", True),
        (" Production ", True),
        ("development", False),
        ("staging", False),
    ])
    def test_is_production(self, environment, expected) -> None:
        assert make_settings(ENVIRONMENT=environment).is_production is expected

    def test_upstream_url_joins_paths(self) -> None:
        settings = make_settings(UPSTREAM_BASE_URL="https://scribe.example.com/")
        assert settings.upstream_url("/process_transcript") == "https://scribe.example.com/process_transcript"
        assert settings.upstream_url("api/v1/transcribe_audio") == "https://scribe.example.com/api/v1/transcribe_audio"

    def test_default_audio_limit(self) -> None:
        assert make_settings().MAX_AUDIO_BYTES == 25 * 1024 * 1024

    def test_validate_lists_missing_values(self) -> None:
        with pytest.raises(ValueError) as exc_info:
            validate_relay_settings(make_settings(API_KEY=None, UPSTREAM_BASE_URL=""))
        assert "API_KEY" in str(exc_info.value)
        assert "UPSTREAM_BASE_URL" in str(exc_info.value)

    def test_validate_accepts_complete_settings(self) -> None:
        validate_relay_settings(make_settings())


class TestCredential:
    def test_header_from_settings(self) -> None:
        assert credential_headers(make_settings()) == {"X-API-Key": TEST_API_KEY}

    def test_custom_header_name(self) -> None:
        assert credential_headers(make_settings(API_KEY_NAME="X-Scribe-Key")) == {"X-Scribe-Key": TEST_API_KEY}

    def test_missing_credential_raises(self) -> None:
        with pytest.raises(ValueError):
            credential_headers(make_settings(API_KEY=None))

    @pytest.mark.parametrize("value, masked", [
        (None, "<unset>"),
        ("", "<unset>"),
        ("short", "****"),
        ("sk-live-abcdef123456", "****3456"),
    ])
    def test_mask(self, value, masked) -> None:
        assert mask_credential(value) == masked

    def test_client_credential_headers(self) -> None:
        assert is_client_credential_header("X-API-Key")
        assert is_client_credential_header("authorization")
        assert not is_client_credential_header("content-type")


class TestErrorSignal:
    def test_one_line(self) -> None:
        signal = ErrorSignal(kind=ErrorKind.UPSTREAM_HTTP_ERROR, message="line one\nline two")
        assert signal.one_line() == "line one line two"

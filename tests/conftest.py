"""Shared pytest fixtures, mock factories, and test markers.

Test tiers
----------
  unit        Fast, fully offline. HTTP is mocked with httpx.MockTransport.

  integration Submission controller -> relay app (in-process ASGI) ->
              mocked upstream, wired together.

Run:
  pytest tests/unit tests/integration
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from scribe_relay.core.config import Settings
from scribe_relay.core.errors import ErrorSignal
from scribe_relay.models.sections import Section
from scribe_relay.ui.display import DisplaySurface

TEST_API_KEY = "test-relay-key-0123456789"
UPSTREAM_BASE_URL = "https://upstream.test"
RELAY_URL = "http://relay.test"


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast offline unit tests")
    config.addinivalue_line("markers", "integration: client, relay and mocked upstream wired together")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def make_settings(**overrides: Any) -> Settings:
    values = dict(
        API_KEY=TEST_API_KEY,
        ENVIRONMENT="development",
        UPSTREAM_BASE_URL=UPSTREAM_BASE_URL,
        RELAY_URL=RELAY_URL,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def production_settings() -> Settings:
    return make_settings(ENVIRONMENT="production")


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

class RecordingDisplay(DisplaySurface):
    """Synthetic rendering context that records every call in order."""

    def __init__(self) -> None:
        self.events: List[str] = []
        self.submit_enabled = True
        self.busy = False
        self.error: Optional[ErrorSignal] = None
        self.sections: List[Section] = []

    def set_submit_enabled(self, enabled: bool) -> None:
        self.events.append(f"submit_enabled:{enabled}")
        self.submit_enabled = enabled

    def set_busy(self, busy: bool) -> None:
        self.events.append(f"busy:{busy}")
        self.busy = busy

    def show_error(self, signal: ErrorSignal) -> None:
        self.events.append(f"show_error:{signal.kind.value}")
        self.error = signal

    def clear_error(self) -> None:
        self.events.append("clear_error")
        self.error = None

    def show_results(self, sections: List[Section]) -> None:
        self.events.append("show_results")
        self.sections = list(sections)

    def clear_results(self) -> None:
        self.events.append("clear_results")
        self.sections = []

    def scroll_into_view(self, panel: str) -> None:
        self.events.append(f"scroll:{panel}")

    def count(self, event: str) -> int:
        return self.events.count(event)

    def section_names(self) -> List[str]:
        return [section.name for section in self.sections]


@pytest.fixture
def display() -> RecordingDisplay:
    return RecordingDisplay()


# ---------------------------------------------------------------------------
# Mock HTTP
# ---------------------------------------------------------------------------

class RecordingHandler:
    """MockTransport handler that replays one canned response and keeps every request."""

    def __init__(
        self,
        status_code: int = 200,
        json_body: Any = None,
        content: Optional[bytes] = None,
        error: Optional[Exception] = None,
        on_request: Optional[Callable[[httpx.Request], None]] = None,
    ) -> None:
        self.status_code = status_code
        self.json_body = json_body
        self.content = content
        self.error = error
        self.on_request = on_request
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)
        if self.error is not None:
            raise self.error
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        if self.json_body is None:
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, json=self.json_body)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


# ---------------------------------------------------------------------------
# Result documents
# ---------------------------------------------------------------------------

@pytest.fixture
def chest_pain_result() -> Dict[str, Any]:
    return {
        "chief_complaint": "chest pain",
        "recommended_cpt_codes": [
            {
                "code": "99213",
                "description": "Office visit",
                "requires_lcd": True,
                "lcd_code": "L12345",
                "lcd_status": "Meets",
            }
        ],
    }


@pytest.fixture
def full_result() -> Dict[str, Any]:
    return {
        "patient_info": {"age": "58", "sex": "F", "visit_date": "2024-05-02", "visit_location": None},
        "chief_complaint": "Low back pain radiating to the left leg",
        "history_of_present_illness": "Six weeks of pain after lifting.",
        "assessment": "Lumbar radiculopathy",
        "plan": "MRI lumbar spine, physical therapy",
        "pain_rating": {"level": "7", "location": "lower back"},
        "icd_codes": ["M54.16", "M54.5"],
        "recommended_cpt_codes": [
            {
                "code": "72148",
                "description": "MRI lumbar spine without contrast",
                "requires_lcd": True,
                "lcd_code": "L34220",
                "lcd_status": "Partially Meets",
                "lcd_requirements": ["6 weeks conservative care", "Neurologic deficit"],
            },
            {
                "code": "97110",
                "description": "Therapeutic exercise",
                "requires_lcd": False,
                "lcd_code": "L33611",
            },
        ],
        "lcd_validation": [
            {
                "cpt_code": "72148",
                "lcd_code": "L34220",
                "status": "Partially Meets",
                "requirements": ["6 weeks conservative care documented", "Neurologic deficit not documented"],
            }
        ],
        "qpp_measures": [{"measure_id": "131", "title": "Pain Assessment and Follow-Up", "status": "Met"}],
        "follow_up_instructions": "Return in 4 weeks",
        "gpt_response": "Summary text",
        "imaging_summary": "None on file",
        "prompt": "",
    }

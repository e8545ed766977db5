from enum import Enum
from typing import Any, Dict, List, Optional
import json
import logging

import httpx
from pydantic import BaseModel

from scribe_relay.core.config import Settings, get_settings
from scribe_relay.core.errors import (
    ErrorKind, ErrorSignal, SubmissionError,
    RATE_LIMITED_MESSAGE, UNAUTHORIZED_MESSAGE, NETWORK_MESSAGE, BAD_RESPONSE_MESSAGE, DISPLAY_FAULT_MESSAGE,
)
from scribe_relay.models.clinical_result import ClinicalResult
from scribe_relay.models.sections import Section
from scribe_relay.models.submission import SubmissionRequest
from scribe_relay.services.input_normalizer import InputNormalizer
from scribe_relay.services.result_renderer import ResultRenderer
from scribe_relay.ui.display import DisplaySurface, ERROR_PANEL, RESULTS_PANEL

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    IDLE = "Idle"
    PENDING = "Pending"
    SUCCESS = "Success"
    FAILED = "Failed"


class SubmissionOutcome(BaseModel):
    state: SubmissionState
    result: Optional[Dict[str, Any]] = None
    sections: Optional[List[Section]] = None
    error: Optional[ErrorSignal] = None

    @property
    def ok(self) -> bool:
        return self.state is SubmissionState.SUCCESS and self.error is None


def _upstream_detail(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    detail = body.get("detail")
    if detail is None or detail == "":
        return None
    if isinstance(detail, str):
        return detail
    # FastAPI validation errors arrive as a list
    return json.dumps(detail, ensure_ascii=False, default=str)


def classify_response(response: httpx.Response) -> ClinicalResult:
    """
    Map one relay response onto a result document or an error signal.

    Args:
        response: Relay HTTP response

    Returns:
        The parsed JSON object

    Raises:
        SubmissionError: RateLimited, Unauthorized, UpstreamHTTPError or
            BadResponseShape
    """
    status = response.status_code
    if status == 429:
        raise SubmissionError(ErrorSignal(kind=ErrorKind.RATE_LIMITED, message=RATE_LIMITED_MESSAGE))
    if status == 401:
        raise SubmissionError(ErrorSignal(kind=ErrorKind.UNAUTHORIZED, message=UNAUTHORIZED_MESSAGE))
    if not response.is_success:
        detail = _upstream_detail(response)
        raise SubmissionError(ErrorSignal(
            kind=ErrorKind.UPSTREAM_HTTP_ERROR,
            message=detail or f"Server error: {status}",
            detail=detail,
        ))

    try:
        data = response.json()
    except ValueError as e:
        raise SubmissionError(ErrorSignal(
            kind=ErrorKind.BAD_RESPONSE_SHAPE, message=BAD_RESPONSE_MESSAGE, detail=str(e),
        ))
    if not isinstance(data, dict):
        raise SubmissionError(ErrorSignal(
            kind=ErrorKind.BAD_RESPONSE_SHAPE,
            message=BAD_RESPONSE_MESSAGE,
            detail=f"expected a JSON object, got {type(data).__name__}",
        ))
    return data


class SubmissionController:
    """
    Drives one submission lifecycle: Idle -> Pending -> Success | Failed.
    Only one request may be in flight; the submit control stays disabled
    until it resolves.
    """

    def __init__(
        self,
        normalizer: InputNormalizer,
        display: DisplaySurface,
        client: httpx.AsyncClient,
        settings: Optional[Settings] = None,
        renderer: Optional[ResultRenderer] = None,
    ):
        self.normalizer = normalizer
        self.display = display
        self.client = client
        self.settings = settings or get_settings()
        self.renderer = renderer or ResultRenderer()
        self.state = SubmissionState.IDLE

    def relay_url(self, request: SubmissionRequest) -> str:
        path = self.settings.RELAY_AUDIO_PATH if request.is_audio else self.settings.RELAY_PATH
        return self.settings.RELAY_URL.rstrip("/") + path

    async def dispatch(self, request: SubmissionRequest) -> ClinicalResult:
        """
        Send the request to the relay once and classify the response.

        Raises:
            SubmissionError: For every failure kind except Validation
        """
        url = self.relay_url(request)
        try:
            if request.is_audio:
                logger.info(f"Submitting audio file {request.audio.filename} ({request.audio.size} bytes)")
                response = await self.client.post(url, files=request.multipart_files())
            else:
                logger.info(f"Submitting transcript ({len(request.transcript_text)} characters)")
                response = await self.client.post(url, json=request.json_body())
        except httpx.RequestError as e:
            logger.error(f"Error reaching relay at {url}: {e.__class__.__name__}: {str(e)}")
            raise SubmissionError(ErrorSignal(
                kind=ErrorKind.NETWORK, message=NETWORK_MESSAGE, detail=str(e) or e.__class__.__name__,
            ))
        return classify_response(response)

    async def submit(self) -> SubmissionOutcome:
        """
        Run one submission from the current input selection.

        Returns:
            SubmissionOutcome with the final state, and the rendered sections
            or the error signal shown
        """
        if self.state is SubmissionState.PENDING:
            logger.warning("Submission ignored: a request is already in flight")
            return SubmissionOutcome(state=SubmissionState.PENDING)

        try:
            request = self.normalizer.build_request()
        except SubmissionError as e:
            # Shown inline; the control surface stays enabled
            self.state = SubmissionState.IDLE
            self.display.show_error(e.signal)
            return SubmissionOutcome(state=self.state, error=e.signal)

        self.state = SubmissionState.PENDING
        self.display.set_submit_enabled(False)
        self.display.set_busy(True)
        self.display.clear_error()
        self.display.clear_results()

        result: Optional[ClinicalResult] = None
        error: Optional[ErrorSignal] = None
        try:
            result = await self.dispatch(request)
        except SubmissionError as e:
            error = e.signal
        except Exception:
            self.state = SubmissionState.IDLE
            raise
        finally:
            self.display.set_busy(False)
            self.display.set_submit_enabled(True)

        if error is not None:
            self.state = SubmissionState.FAILED
            logger.warning(f"Submission failed: {error.kind.value}: {error.message}")
            self.display.show_error(error)
            self.display.scroll_into_view(ERROR_PANEL)
            return SubmissionOutcome(state=self.state, error=error)

        self.state = SubmissionState.SUCCESS
        sections = self.renderer.render(result, self.display)
        if sections is None:
            self.display.scroll_into_view(ERROR_PANEL)
            return SubmissionOutcome(
                state=self.state,
                result=result,
                error=ErrorSignal(kind=ErrorKind.DISPLAY_FAULT, message=DISPLAY_FAULT_MESSAGE),
            )
        self.display.scroll_into_view(RESULTS_PANEL)
        return SubmissionOutcome(state=self.state, result=result, sections=sections)

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ErrorKind(str, Enum):
    VALIDATION = "Validation"
    RATE_LIMITED = "RateLimited"
    UNAUTHORIZED = "Unauthorized"
    UPSTREAM_HTTP_ERROR = "UpstreamHTTPError"
    NETWORK = "Network"
    BAD_RESPONSE_SHAPE = "BadResponseShape"
    DISPLAY_FAULT = "DisplayFault"


# Default one-line messages shown in the error panel
NO_INPUT_MESSAGE = "Please provide a transcript or an audio file."
RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again later."
UNAUTHORIZED_MESSAGE = "Unauthorized: the relay rejected the request credentials."
NETWORK_MESSAGE = "Network error: unable to reach the relay."
BAD_RESPONSE_MESSAGE = "Invalid response format from server"
DISPLAY_FAULT_MESSAGE = "Error displaying results. Please try again."


class ErrorSignal(BaseModel):
    """Client-visible failure, consumed by the presentation layer only."""

    kind: ErrorKind
    message: str
    detail: Optional[str] = None

    def one_line(self) -> str:
        return " ".join(self.message.split())


class SubmissionError(Exception):
    """Raised on the client side to carry an ErrorSignal to the controller."""

    def __init__(self, signal: ErrorSignal):
        super().__init__(signal.message)
        self.signal = signal

    @property
    def kind(self) -> ErrorKind:
        return self.signal.kind

    @classmethod
    def validation(cls, message: str, detail: Optional[str] = None) -> "SubmissionError":
        return cls(ErrorSignal(kind=ErrorKind.VALIDATION, message=message, detail=detail))

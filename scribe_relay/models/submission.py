from pydantic import BaseModel, model_validator
from typing import Optional, Dict, Any


class AudioPayload(BaseModel):
    filename: str
    media_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class SubmissionRequest(BaseModel):
    """Exactly one of transcript text or an audio payload."""

    transcript_text: Optional[str] = None
    audio: Optional[AudioPayload] = None

    @model_validator(mode="after")
    def _exactly_one_mode(self) -> "SubmissionRequest":
        has_text = bool(self.transcript_text)
        has_audio = self.audio is not None
        if has_text == has_audio:
            raise ValueError("exactly one of transcript_text or audio must be set")
        return self

    @property
    def is_audio(self) -> bool:
        return self.audio is not None

    def json_body(self) -> Dict[str, Any]:
        return {"transcript": self.transcript_text}

    def multipart_files(self) -> Dict[str, Any]:
        return {"file": (self.audio.filename, self.audio.content, self.audio.media_type)}

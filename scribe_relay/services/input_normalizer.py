from typing import Optional, Union
import logging
import mimetypes
from pathlib import Path

from scribe_relay.core.errors import SubmissionError, NO_INPUT_MESSAGE
from scribe_relay.models.submission import AudioPayload, SubmissionRequest

logger = logging.getLogger(__name__)

MAX_AUDIO_BYTES = 25 * 1024 * 1024

# mpeg-audio, wav and m4a, under the names browsers and mimetypes report them
ACCEPTED_MEDIA_TYPES = frozenset({
    "audio/mpeg",
    "audio/wav",
    "audio/x-wav",
    "audio/m4a",
    "audio/x-m4a",
    "audio/mp4",
})

MEDIA_TYPES_BY_SUFFIX = {
    ".mp3": "audio/mpeg",
    ".mpeg": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/m4a",
}


def normalize_media_type(media_type: Optional[str]) -> str:
    """Lower-case a declared media type and drop parameters like ;codecs=."""
    if not media_type:
        return ""
    return media_type.split(";", 1)[0].strip().lower()


def guess_media_type(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in MEDIA_TYPES_BY_SUFFIX:
        return MEDIA_TYPES_BY_SUFFIX[suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


def check_audio_constraints(size: int, media_type: str, max_bytes: int = MAX_AUDIO_BYTES) -> None:
    """
    Run the file acceptance checks in order: size, then media type.

    Args:
        size: Byte size of the file
        media_type: Declared media type
        max_bytes: Largest accepted size, inclusive

    Raises:
        SubmissionError: Validation signal naming the first violated constraint
    """
    if size > max_bytes:
        raise SubmissionError.validation(
            f"Audio file is too large: {size} bytes (limit {max_bytes} bytes).",
            detail=str(size),
        )
    if normalize_media_type(media_type) not in ACCEPTED_MEDIA_TYPES:
        raise SubmissionError.validation(
            f"Unsupported audio type: {media_type or '<none>'}. Use MP3, WAV or M4A.",
            detail=media_type or None,
        )


class InputNormalizer:
    """
    Holds the current transcript-or-audio selection and resolves it into
    one SubmissionRequest. Setting either input clears the other.
    """

    def __init__(self, max_audio_bytes: int = MAX_AUDIO_BYTES):
        self.max_audio_bytes = max_audio_bytes
        self._text: str = ""
        self._audio: Optional[AudioPayload] = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def audio(self) -> Optional[AudioPayload]:
        return self._audio

    def enter_text(self, text: str) -> None:
        self._text = text or ""
        if self._text and self._audio is not None:
            logger.debug("Transcript entered; clearing selected audio file")
            self._audio = None

    def select_file(self, payload: AudioPayload) -> None:
        """
        Select an audio file, clearing any entered text.

        Raises:
            SubmissionError: If the file fails a check; the selection is cleared
        """
        self._text = ""
        self._audio = None
        check_audio_constraints(payload.size, payload.media_type, self.max_audio_bytes)
        self._audio = payload

    def select_path(self, path: Union[str, Path], media_type: Optional[str] = None) -> None:
        """Select an audio file from disk; size is checked before the file is read."""
        path = Path(path)
        self._text = ""
        self._audio = None
        declared = media_type or guess_media_type(path)
        check_audio_constraints(path.stat().st_size, declared, self.max_audio_bytes)
        self._audio = AudioPayload(filename=path.name, media_type=declared, content=path.read_bytes())

    def clear(self) -> None:
        self._text = ""
        self._audio = None

    def build_request(self) -> SubmissionRequest:
        """
        Resolve the current selection.

        Returns:
            SubmissionRequest with exactly one mode set

        Raises:
            SubmissionError: Validation signal when neither input is usable
        """
        if self._audio is not None:
            return SubmissionRequest(audio=self._audio)
        transcript = self._text.strip()
        if not transcript:
            raise SubmissionError.validation(NO_INPUT_MESSAGE)
        return SubmissionRequest(transcript_text=transcript)

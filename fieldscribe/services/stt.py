"""Speech-to-text adapter (Deepgram pre-recorded API over httpx).

transcribe_* returns the transcript, or None when the recording holds no
speech. None is an outcome, not an error: callers map it to a failed
assessment with a fixed user-facing reason.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import PurePosixPath

import httpx

from fieldscribe.config import STTConfig
from fieldscribe.errors import TransportError
from fieldscribe.services import media_store

logger = logging.getLogger(__name__)

# Declared content types are unreliable (browsers report video/webm, empty, ...);
# the backend rejects mismatches outright, so the extension wins.
AUDIO_MIME_BY_EXT = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "m4a": "audio/mp4",
    "webm": "audio/webm",
}
FALLBACK_MIME = "audio/*"


def resolve_audio_mime(filename: str, declared: str | None = None) -> str:
    ext = PurePosixPath(filename.split("?", 1)[0]).suffix.lower().lstrip(".")
    if ext in AUDIO_MIME_BY_EXT:
        return AUDIO_MIME_BY_EXT[ext]
    return declared or FALLBACK_MIME


def extract_transcript(payload: dict) -> str | None:
    """Pull the first alternative's transcript; blank means no speech."""
    try:
        transcript = payload["results"]["channels"][0]["alternatives"][0]["transcript"]
    except (KeyError, IndexError, TypeError):
        return None
    if not transcript or not str(transcript).strip():
        return None
    return str(transcript).strip()


class SpeechToText(ABC):
    """Abstract interface for transcription backends."""

    @abstractmethod
    async def transcribe_bytes(self, data: bytes, filename: str, content_type: str | None = None) -> str | None:
        ...

    @abstractmethod
    async def transcribe_url(self, url: str) -> str | None:
        ...

    async def transcribe_resource(self, ref: str, content_type: str | None = None) -> str | None:
        """Transcribe a bucket path or a public URL. content_type is the type
        declared when a stored object was uploaded, if known."""
        if media_store.is_remote(ref):
            return await self.transcribe_url(ref)
        data = await media_store.read_object(ref)
        return await self.transcribe_bytes(data, ref, content_type)


class DeepgramTranscriber(SpeechToText):
    def __init__(self, api_key: str, config: STTConfig, client: httpx.AsyncClient | None = None):
        self.api_key = api_key
        self.config = config
        self.client = client

    def _params(self) -> dict:
        return {
            "model": self.config.model,
            "language": self.config.language,
            "smart_format": str(self.config.smart_format).lower(),
            "diarize": str(self.config.diarize).lower(),
        }

    async def transcribe_bytes(self, data: bytes, filename: str, content_type: str | None = None) -> str | None:
        mime = resolve_audio_mime(filename, content_type)
        logger.info(f"STT request for {filename} ({len(data)} bytes, {mime})")
        return await self._post(content=data, headers={"Content-Type": mime})

    async def transcribe_url(self, url: str) -> str | None:
        logger.info(f"STT request for remote audio {url}")
        return await self._post(json={"url": url})

    async def _post(self, **request_kwargs) -> str | None:
        headers = {"Authorization": f"Token {self.api_key}"}
        headers.update(request_kwargs.pop("headers", {}))

        owns_client = self.client is None
        client = self.client or httpx.AsyncClient(timeout=self.config.timeout_seconds)
        try:
            resp = await client.post(
                self.config.api_url, params=self._params(), headers=headers, **request_kwargs,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Deepgram STT request failed: {e}", original_error=e) from e
        finally:
            if owns_client:
                await client.aclose()

        if resp.status_code >= 400:
            raise _backend_error(resp)

        transcript = extract_transcript(resp.json())
        if transcript is None:
            logger.info("STT complete: no speech detected")
        else:
            logger.info(f"STT complete: {len(transcript)} chars")
        return transcript


def _backend_error(resp: httpx.Response) -> TransportError:
    """Distinguish a backend error payload from a bare HTTP failure."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and (body.get("err_msg") or body.get("reason")):
        msg = body.get("err_msg") or body.get("reason")
        return TransportError(
            f"Deepgram STT Error: {msg}", status_code=resp.status_code, backend_message=msg,
        )
    return TransportError(
        f"Deepgram STT HTTP {resp.status_code}", status_code=resp.status_code,
    )

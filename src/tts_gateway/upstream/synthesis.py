"""
Speech synthesis against the regional Azure TTS endpoint.

Flow:
    ensure_fresh() -> build_ssml() -> POST {region}.tts.speech.microsoft.com
    -> AudioStream (upstream body streamed through, never buffered)

The audio generator owns the upstream response: it closes it when the
client has read everything, or earlier when the client goes away and the
generator is closed.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional
from xml.sax.saxutils import escape, quoteattr

import httpx

from tts_gateway.core.config import Defaults
from tts_gateway.core.errors import SynthesisError
from tts_gateway.core.logging import debug, fail, get_logger, verbose
from tts_gateway.core.metrics import metrics
from tts_gateway.utils.timeit import timeit

from .credentials import CredentialStore

_LOG = get_logger("tts-gateway.synthesis")

SYNTHESIS_URL_TEMPLATE = "https://{region}.tts.speech.microsoft.com/cognitiveservices/v1"
USER_AGENT = "okhttp/4.5.0"
CHUNK_SIZE = 16 * 1024

# Container prefix or codec suffix of an output format -> file extension
_FORMAT_EXTENSIONS = (
    ("mp3", "mp3"),
    ("opus", "opus"),
    ("riff", "wav"),
    ("ogg", "ogg"),
    ("webm", "webm"),
    ("amr", "amr"),
    ("raw", "pcm"),
)


@dataclass
class VoiceSynthesisRequest:
    """
    One speech request.

    Attributes:
        text: Text to speak. Escaped before it is placed in SSML.
        voice: Voice short name, e.g. "zh-CN-XiaoxiaoMultilingualNeural".
        rate: Speaking rate, percent relative to normal.
        pitch: Pitch, percent relative to normal.
        output_format: X-Microsoft-OutputFormat value.
        download: Attach a Content-Disposition filename to the response.
    """
    text: str
    voice: str = Defaults.TTS_DEFAULT_VOICE
    rate: float = Defaults.TTS_DEFAULT_RATE
    pitch: float = Defaults.TTS_DEFAULT_PITCH
    output_format: str = Defaults.TTS_DEFAULT_OUTPUT_FORMAT
    download: bool = False


def _fmt_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_ssml(text: str, voice: str, rate: float = 0, pitch: float = 0) -> str:
    """
    Render the SSML document for one utterance.

    Example:
        >>> build_ssml("a < b", "zh-CN-YunxiNeural", 10, -5.0)
        '<speak ...><voice name="zh-CN-YunxiNeural">...<prosody rate="10%" pitch="-5%" volume="50">a &lt; b</prosody>...'
    """
    return (
        '<speak xmlns="http://www.w3.org/2001/10/synthesis" '
        'xmlns:mstts="http://www.w3.org/2001/mstts" version="1.0" xml:lang="zh-CN">'
        f"<voice name={quoteattr(voice)}>"
        '<mstts:express-as style="general" styledegree="1.0" role="default">'
        f'<prosody rate="{_fmt_number(rate)}%" pitch="{_fmt_number(pitch)}%" volume="50">'
        f"{escape(text)}"
        "</prosody></mstts:express-as></voice></speak>"
    )


def extension_for_format(output_format: str) -> str:
    """File extension for an output format; "mp3" when unknown."""
    fmt = output_format.lower()
    for marker, ext in _FORMAT_EXTENSIONS:
        if fmt.endswith(marker) or fmt.startswith(marker):
            return ext
    return "mp3"


@dataclass
class AudioStream:
    """
    Streamed synthesis result.

    Attributes:
        content_type: Content type reported by the upstream service.
        chunks: Byte iterator over the audio body.
        filename: Set when a download was requested.
    """
    content_type: str
    chunks: Iterator[bytes]
    filename: Optional[str] = None
    extra_headers: Dict[str, str] = field(default_factory=dict)

    def iter_bytes(self) -> Iterator[bytes]:
        return self.chunks

    def headers(self) -> Dict[str, str]:
        h = dict(self.extra_headers)
        if self.filename:
            h["Content-Disposition"] = f'attachment; filename="{self.filename}"'
        return h

    def read(self) -> bytes:
        """Drain the stream. Used by the CLI, never by the HTTP route."""
        return b"".join(self.chunks)


def _stream_body(resp: httpx.Response) -> Iterator[bytes]:
    total = 0
    try:
        for chunk in resp.iter_bytes(CHUNK_SIZE):
            total += len(chunk)
            yield chunk
    finally:
        resp.close()
        metrics.add_audio_bytes(total)
        verbose(_LOG, "audio_streamed", bytes=total)


class SynthesisClient:
    """Turns VoiceSynthesisRequests into streamed audio."""

    def __init__(self, client: httpx.Client, credentials: CredentialStore):
        self._client = client
        self._credentials = credentials

    def synthesize(self, request: VoiceSynthesisRequest) -> AudioStream:
        """
        Synthesize one request.

        Raises:
            UpstreamAuthError: No usable credential could be obtained.
            SynthesisError: The synthesis endpoint failed.
        """
        cred = self._credentials.ensure_fresh()

        ssml = build_ssml(request.text, request.voice, request.rate, request.pitch)
        debug(_LOG, "ssml", ssml=ssml)

        url = SYNTHESIS_URL_TEMPLATE.format(region=cred.region)
        headers = {
            "Authorization": cred.token,
            "Content-Type": "application/ssml+xml",
            "X-Microsoft-OutputFormat": request.output_format,
            "User-Agent": USER_AGENT,
        }
        req = self._client.build_request("POST", url, headers=headers, content=ssml.encode("utf-8"))

        with timeit("synthesis") as t:
            try:
                resp = self._client.send(req, stream=True)
            except httpx.HTTPError as e:
                metrics.record_upstream_error("synthesis")
                fail(_LOG, "synthesis_transport_error", error=type(e).__name__)
                raise SynthesisError(f"Synthesis request failed: {type(e).__name__}") from e

        if not resp.is_success:
            status = resp.status_code
            resp.close()
            metrics.record_upstream_error("synthesis")
            fail(_LOG, "synthesis_rejected", upstream_status=status, voice=request.voice)
            raise SynthesisError(f"Synthesis failed with status {status}", upstream_status=status)

        verbose(_LOG, "synthesis_started", region=cred.region, voice=request.voice,
                seconds=round(t.timing.seconds, 3))

        filename = None
        if request.download:
            filename = f"{uuid.uuid4().hex}.{extension_for_format(request.output_format)}"

        return AudioStream(
            content_type=resp.headers.get("content-type", "audio/mpeg"),
            chunks=_stream_body(resp),
            filename=filename,
        )

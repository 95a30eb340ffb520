"""
Public Azure voice catalog.

The voice list endpoint is unauthenticated; it answers requests that look
like they come from the Speech Studio web page. Results are cached for
``voices.cache_ttl_seconds`` so that /v1/models does not hit the upstream on
every call.

The catalog can also be exported as a MultiTTS speaker list, the YAML format
the MultiTTS Android app imports:

    - !!org.nobody.multitts.tts.speaker.Speaker
      avatar: ''
      code: zh-CN-XiaoxiaoNeural
      ...
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
import yaml

from tts_gateway.core.config import Defaults
from tts_gateway.core.errors import CatalogFetchError
from tts_gateway.core.logging import fail, get_logger, info, verbose
from tts_gateway.core.metrics import metrics
from tts_gateway.utils.timeit import timeit

from .cache import TTLCache

_LOG = get_logger("tts-gateway.voices")

VOICES_URL = "https://eastus.api.speech.microsoft.com/cognitiveservices/voices/list"

_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
    "X-Ms-Useragent": "SpeechStudio/2021.05.001",
    "Content-Type": "application/json",
    "Origin": "https://azure.microsoft.com",
    "Referer": "https://azure.microsoft.com",
}

_CACHE_KEY = "voices"

MULTITTS_SPEAKER_TAG = "tag:yaml.org,2002:org.nobody.multitts.tts.speaker.Speaker"
MULTITTS_DEFAULT_SAMPLE_RATE = 24000


@dataclass(frozen=True)
class VoiceDescriptor:
    short_name: str
    display_name: str = ""
    local_name: str = ""
    gender: str = ""
    locale: str = ""
    sample_rate_hertz: Optional[int] = None
    words_per_minute: Optional[int] = None

    @classmethod
    def from_upstream(cls, item: Dict[str, Any]) -> "VoiceDescriptor":
        """Build from one entry of the upstream JSON array."""
        return cls(
            short_name=str(item["ShortName"]),
            display_name=str(item.get("DisplayName") or ""),
            local_name=str(item.get("LocalName") or ""),
            gender=str(item.get("Gender") or ""),
            locale=str(item.get("Locale") or ""),
            sample_rate_hertz=_opt_int(item.get("SampleRateHertz")),
            words_per_minute=_opt_int(item.get("WordsPerMinute")),
        )


def _opt_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class VoiceCatalog:
    """
    Cached view of the upstream voice list.

    Args:
        client: Shared httpx client.
        ttl_seconds: Cache lifetime; 0 fetches on every call.
        cache: Optional preconfigured TTLCache (tests inject one with a fake clock).
    """

    def __init__(
        self,
        client: httpx.Client,
        ttl_seconds: int = Defaults.VOICES_CACHE_TTL_SECONDS,
        cache: Optional[TTLCache] = None,
        url: str = VOICES_URL,
    ):
        self._client = client
        self._url = url
        self._cache: TTLCache[List[VoiceDescriptor]] = cache or TTLCache(ttl_seconds, max_items=1)
        # One upstream fetch at a time; late arrivals reuse the result
        self._fetch_lock = threading.Lock()

    def list_voices(self) -> List[VoiceDescriptor]:
        """
        Return the catalog, fetching it when the cache is cold.

        Raises:
            CatalogFetchError: Non-success status, transport failure or an
                unparseable body.
        """
        voices = self._cache.get(_CACHE_KEY)
        if voices is not None:
            metrics.record_catalog_lookup("cache")
            return voices

        with self._fetch_lock:
            voices = self._cache.get(_CACHE_KEY)
            if voices is not None:
                metrics.record_catalog_lookup("cache")
                return voices

            voices = self._fetch()
            self._cache.set(_CACHE_KEY, voices)
            metrics.record_catalog_lookup("upstream")
            return voices

    def _fetch(self) -> List[VoiceDescriptor]:
        with timeit("voices_fetch") as t:
            try:
                resp = self._client.get(self._url, headers=_HEADERS)
            except httpx.HTTPError as e:
                metrics.record_upstream_error("voices")
                fail(_LOG, "voices_transport_error", error=type(e).__name__)
                raise CatalogFetchError(f"Voice list request failed: {type(e).__name__}") from e

        if not resp.is_success:
            metrics.record_upstream_error("voices")
            fail(_LOG, "voices_rejected", upstream_status=resp.status_code)
            raise CatalogFetchError(
                f"Voice list request failed with status {resp.status_code}",
                upstream_status=resp.status_code,
            )

        try:
            voices = [VoiceDescriptor.from_upstream(item) for item in resp.json()]
        except (ValueError, KeyError, TypeError) as e:
            metrics.record_upstream_error("voices")
            fail(_LOG, "voices_malformed", error=type(e).__name__)
            raise CatalogFetchError("Voice list response is malformed",
                                    upstream_status=resp.status_code) from e

        info(_LOG, "voices_fetched", count=len(voices), seconds=round(t.timing.seconds, 3))
        return voices

    def stats(self) -> Dict[str, Any]:
        return self._cache.stats()

    def invalidate(self) -> None:
        dropped = self._cache.clear()
        verbose(_LOG, "voices_invalidated", dropped=dropped)


# ─────────────────────────────────────────────────────────────────────────────
# MultiTTS export
# ─────────────────────────────────────────────────────────────────────────────

class _Speaker(dict):
    """Marker type so the dumper emits the Speaker tag."""


class _MultiTTSDumper(yaml.SafeDumper):
    pass


def _represent_speaker(dumper: yaml.SafeDumper, data: _Speaker) -> yaml.Node:
    return dumper.represent_mapping(MULTITTS_SPEAKER_TAG, data.items())


_MultiTTSDumper.add_representer(_Speaker, _represent_speaker)


def to_multitts_speaker(voice: VoiceDescriptor) -> Dict[str, Any]:
    """Field mapping for one MultiTTS speaker entry."""
    wpm = voice.words_per_minute if voice.words_per_minute is not None else ""
    return {
        "avatar": "",
        "code": voice.short_name,
        "desc": "",
        "extendUI": "",
        "gender": 0 if voice.gender == "Female" else 1,
        "name": voice.local_name,
        "note": f"wpm: {wpm}",
        "param": "",
        "sampleRate": voice.sample_rate_hertz or MULTITTS_DEFAULT_SAMPLE_RATE,
        "speed": 1.5,
        "type": 1,
        "volume": 1,
    }


def to_multitts_yaml(voices: List[VoiceDescriptor]) -> str:
    """Render voices as a MultiTTS speaker list."""
    speakers = [_Speaker(to_multitts_speaker(v)) for v in voices]
    return yaml.dump(
        speakers,
        Dumper=_MultiTTSDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )

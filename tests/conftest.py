"""Shared fixtures: fake JWTs, a controllable clock and a fake Microsoft backend."""
from __future__ import annotations

import base64
import json
import threading
import time
from typing import Any, Dict, List, Optional

import httpx
import pytest

START = 1_800_000_000

SAMPLE_VOICES = [
    {
        "ShortName": "zh-CN-XiaoxiaoMultilingualNeural",
        "DisplayName": "Xiaoxiao Multilingual",
        "LocalName": "晓晓 多语言",
        "Gender": "Female",
        "Locale": "zh-CN",
        "SampleRateHertz": "24000",
        "WordsPerMinute": "260",
    },
    {
        "ShortName": "zh-CN-YunxiNeural",
        "DisplayName": "Yunxi",
        "LocalName": "云希",
        "Gender": "Male",
        "Locale": "zh-CN",
        "SampleRateHertz": "48000",
        "WordsPerMinute": "293",
    },
    {
        "ShortName": "en-US-AriaNeural",
        "DisplayName": "Aria",
        "LocalName": "Aria",
        "Gender": "Female",
        "Locale": "en-US",
        "SampleRateHertz": "24000",
    },
]

AUDIO = b"ID3" + b"\x00" * 64


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def make_jwt(exp: Any, **claims: Any) -> str:
    """Unsigned JWT with the given exp claim."""
    header = _b64url(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    body = dict(claims)
    if exp is not None:
        body["exp"] = exp
    payload = _b64url(json.dumps(body).encode())
    return f"{header}.{payload}.signature"


class FakeClock:
    """Epoch-seconds clock the test moves by hand."""

    def __init__(self, now: float = START):
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """
    httpx.MockTransport handler standing in for the three Microsoft hosts.

    Attributes are plain knobs: set ``endpoint_status = 500`` to make the
    next token fetch fail, ``token_ttl`` to control exp, and so on.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.region = "eastasia"
        self.token_ttl = 600
        self.endpoint_status = 200
        self.endpoint_body: Optional[Dict[str, Any]] = None
        self.endpoint_delay = 0.0
        self.synth_status = 200
        self.voices_status = 200
        self.voices: List[Dict[str, Any]] = list(SAMPLE_VOICES)
        self.fail_transport: Optional[str] = None

        self.endpoint_requests: List[httpx.Request] = []
        self.synth_requests: List[httpx.Request] = []
        self.voices_requests: List[httpx.Request] = []
        self.issued_tokens: List[str] = []
        self._lock = threading.Lock()

    @property
    def endpoint_calls(self) -> int:
        return len(self.endpoint_requests)

    def handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if self.fail_transport and self.fail_transport in host:
            raise httpx.ConnectError("connection refused", request=request)

        if host == "dev.microsofttranslator.com":
            return self._endpoint(request)
        if host.endswith(".tts.speech.microsoft.com"):
            with self._lock:
                self.synth_requests.append(request)
            if self.synth_status != 200:
                return httpx.Response(self.synth_status, text="denied")
            return httpx.Response(200, content=AUDIO, headers={"Content-Type": "audio/mpeg"})
        if host == "eastus.api.speech.microsoft.com":
            with self._lock:
                self.voices_requests.append(request)
            if self.voices_status != 200:
                return httpx.Response(self.voices_status, text="nope")
            return httpx.Response(200, json=self.voices)
        return httpx.Response(404)

    def _endpoint(self, request: httpx.Request) -> httpx.Response:
        if self.endpoint_delay:
            time.sleep(self.endpoint_delay)
        with self._lock:
            self.endpoint_requests.append(request)
            n = len(self.endpoint_requests)
        if self.endpoint_status != 200:
            return httpx.Response(self.endpoint_status, text="forbidden")
        if self.endpoint_body is not None:
            return httpx.Response(200, json=self.endpoint_body)
        token = make_jwt(int(self.clock() + self.token_ttl), n=n)
        with self._lock:
            self.issued_tokens.append(token)
        return httpx.Response(200, json={"r": self.region, "t": token})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream(clock) -> FakeUpstream:
    return FakeUpstream(clock)


@pytest.fixture
def http_client(upstream):
    client = httpx.Client(transport=httpx.MockTransport(upstream.handler))
    yield client
    client.close()

"""Concurrent synthesis through GatewayService shares one credential refresh."""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from conftest import AUDIO
from tts_gateway.core.config import Settings
from tts_gateway.services.gateway import GatewayService


class TestConcurrentSynthesis:

    def test_parallel_requests_one_auth_call(self, http_client, upstream, clock):
        service = GatewayService(Settings(raw={}), client=http_client, clock=clock)
        upstream.endpoint_delay = 0.1
        n = 12
        barrier = threading.Barrier(n)

        def speak(i):
            barrier.wait()
            stream = service.synthesize(service.build_request(text=f"line {i}"))
            return stream.read()

        with ThreadPoolExecutor(max_workers=n) as pool:
            bodies = list(pool.map(speak, range(n)))

        assert bodies == [AUDIO] * n
        assert upstream.endpoint_calls == 1
        tokens = {r.headers["Authorization"] for r in upstream.synth_requests}
        assert tokens == {upstream.issued_tokens[0]}

    def test_refresh_after_expiry_under_load(self, http_client, upstream, clock):
        service = GatewayService(Settings(raw={}), client=http_client, clock=clock)
        service.synthesize(service.build_request(text="warm")).read()
        clock.advance(600)
        upstream.endpoint_delay = 0.05
        n = 8
        barrier = threading.Barrier(n)

        def speak(i):
            barrier.wait()
            return service.synthesize(service.build_request(text=str(i))).read()

        with ThreadPoolExecutor(max_workers=n) as pool:
            list(pool.map(speak, range(n)))

        assert upstream.endpoint_calls == 2
        late_tokens = {r.headers["Authorization"] for r in upstream.synth_requests[1:]}
        assert late_tokens == {upstream.issued_tokens[1]}

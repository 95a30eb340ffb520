"""
Wall-clock timing for code blocks.

Used to attach ``seconds=`` to log lines and to feed request and upstream
latency into the Prometheus histograms.

Example:
    with timeit("endpoint_fetch") as t:
        endpoint = fetcher.fetch(client_id)
    success(log, "endpoint_fetched", seconds=t.timing.seconds)
"""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, Optional


@dataclass
class Timing:
    """
    Timing measurement result.

    Attributes:
        name: What was timed (e.g. "synthesis", "voices_fetch").
        seconds: Duration in seconds.
        meta: Optional metadata for log context.
    """
    name: str
    seconds: float
    meta: Optional[Dict[str, Any]] = None


class timeit:
    """
    Context manager for timing code blocks.

    The result is stored on ``timing`` when the block exits, including
    when it exits by raising, so failures can be logged with their duration.
    """

    def __init__(self, name: str, meta: Optional[Dict[str, Any]] = None):
        self.name = name
        self.meta = meta
        self._t0: float | None = None
        self.timing: Timing | None = None

    def __enter__(self) -> "timeit":
        self._t0 = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        t1 = perf_counter()
        assert self._t0 is not None
        self.timing = Timing(name=self.name, seconds=(t1 - self._t0), meta=self.meta)

    @property
    def elapsed(self) -> float:
        """Seconds since entry; the final duration once the block has exited."""
        if self.timing is not None:
            return self.timing.seconds
        if self._t0 is None:
            return 0.0
        return perf_counter() - self._t0

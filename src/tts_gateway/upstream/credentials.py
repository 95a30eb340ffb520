"""
Upstream Credential Cache.

The speech token is process-wide and short-lived. CredentialStore keeps at
most one Credential and refreshes it through the EndpointFetcher once it is
within ``refresh_margin_s`` of the token's own ``exp`` claim.

Refresh is single-flight:

    caller A ──┐                       ┌── returns C2
    caller B ──┼── lock ── fetch ── C2 ┼── returns C2 (re-check under lock)
    caller C ──┘                       └── returns C2

Lock-free reads return the committed snapshot, which is an immutable
Credential, so a reader never sees a region from one token and the token
string from another.

The anonymous client id is rotated only after a refresh has been committed.
A failed refresh leaves both the stale credential and the client id as they
were.
"""
from __future__ import annotations

import base64
import binascii
import json
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from tts_gateway.core.config import Defaults
from tts_gateway.core.errors import UpstreamAuthError
from tts_gateway.core.logging import fail, get_logger, info, success, verbose
from tts_gateway.core.metrics import metrics
from tts_gateway.utils.timeit import timeit

from .endpoint import EndpointFetcher

_LOG = get_logger("tts-gateway.credentials")


@dataclass(frozen=True)
class Credential:
    """
    A committed upstream credential.

    Attributes:
        region: Azure region the token is valid for, e.g. "eastasia".
        token: Opaque JWT sent as the synthesis Authorization header.
        expires_at: Epoch seconds, taken from the token's ``exp`` claim.
    """
    region: str
    token: str
    expires_at: int

    def seconds_remaining(self, now: float) -> float:
        return self.expires_at - now


def new_client_id() -> str:
    """Fresh anonymous client identity: 32 lowercase hex chars."""
    return uuid.uuid4().hex


def decode_token_expiry(token: str) -> int:
    """
    Read the ``exp`` claim from a JWT without verifying it.

    Raises:
        UpstreamAuthError: The token has no payload segment or no integer exp.
    """
    parts = token.split(".")
    if len(parts) < 2:
        raise UpstreamAuthError("Endpoint token is not a JWT")

    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(segment.encode("ascii")))
        return int(claims["exp"])
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
        raise UpstreamAuthError("Endpoint token has no decodable exp claim") from e


class CredentialStore:
    """
    Holds the current Credential and refreshes it on demand.

    Args:
        fetcher: EndpointFetcher used for refreshes.
        refresh_margin_s: Refresh this many seconds before expiry.
        clock: Returns the current time in epoch seconds. Injectable for tests.
        client_id: Initial client identity. Defaults to a fresh one.
    """

    def __init__(
        self,
        fetcher: EndpointFetcher,
        refresh_margin_s: int = Defaults.CREDENTIALS_REFRESH_MARGIN_S,
        clock: Callable[[], float] = time.time,
        client_id: Optional[str] = None,
    ):
        self._fetcher = fetcher
        self._margin = int(refresh_margin_s)
        self._clock = clock
        self._client_id = client_id or new_client_id()
        self._credential: Optional[Credential] = None
        self._lock = threading.Lock()

    @property
    def credential(self) -> Optional[Credential]:
        return self._credential

    @property
    def client_id(self) -> str:
        return self._client_id

    def _is_stale(self, cred: Optional[Credential]) -> bool:
        # Judges only the snapshot passed in; None is always stale.
        if cred is None:
            return True
        return self._clock() >= cred.expires_at - self._margin

    def needs_refresh(self, credential: Optional[Credential] = None) -> bool:
        """True when there is no credential or it is inside the refresh margin."""
        return self._is_stale(credential if credential is not None else self._credential)

    def ensure_fresh(self) -> Credential:
        """
        Return a credential that is valid for at least the refresh margin.

        Raises:
            UpstreamAuthError: The refresh failed. The previous credential
                (if any) stays cached.
        """
        cred = self._credential
        if not self._is_stale(cred):
            return cred

        with self._lock:
            cred = self._credential
            if not self._is_stale(cred):
                verbose(_LOG, "credential_refreshed_by_peer", region=cred.region)
                return cred
            return self._refresh_locked()

    def _refresh_locked(self) -> Credential:
        info(_LOG, "credential_refresh_start", had_credential=self._credential is not None)
        with timeit("credential_refresh") as t:
            try:
                endpoint = self._fetcher.fetch(self._client_id)
                expires_at = decode_token_expiry(endpoint.token)
            except UpstreamAuthError as e:
                metrics.record_credential_refresh("failure")
                fail(_LOG, "credential_refresh_failed", upstream_status=e.upstream_status)
                raise

        cred = Credential(region=endpoint.region, token=endpoint.token, expires_at=expires_at)
        self._credential = cred
        self._client_id = new_client_id()

        remaining = round(cred.seconds_remaining(self._clock()))
        metrics.record_credential_refresh("success", seconds_remaining=remaining)
        success(_LOG, "credential_refreshed", region=cred.region,
                seconds_remaining=remaining, seconds=round(t.timing.seconds, 3))
        return cred

    def snapshot(self) -> dict:
        """Health view of the cache. Never includes the token or client id."""
        cred = self._credential
        if cred is None:
            return {"cached": False, "needs_refresh": True}
        now = self._clock()
        return {
            "cached": True,
            "region": cred.region,
            "expires_at": cred.expires_at,
            "seconds_remaining": max(0, round(cred.seconds_remaining(now))),
            "needs_refresh": self._is_stale(cred),
        }

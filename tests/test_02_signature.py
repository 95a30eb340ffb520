"""Tests for X-MT-Signature generation."""
from __future__ import annotations

import base64
import hashlib
import hmac
from datetime import datetime, timedelta, timezone

from tts_gateway.upstream.signature import SIGNING_SECRET, format_signature_date, sign

URL = "https://dev.microsofttranslator.com/apps/endpoint?api-version=1.0"
NOW = datetime(2026, 10, 17, 13, 34, 0, tzinfo=timezone.utc)
NONCE = "0123456789abcdef0123456789abcdef"


class TestSignatureFormat:
    """Shape of the header value."""

    def test_four_segments(self):
        parts = sign(URL).split("::")
        assert len(parts) == 4
        assert parts[0] == "MSTranslatorAndroidApp"

    def test_differs_every_call(self):
        assert sign(URL) != sign(URL)

    def test_nonce_is_hex_uuid(self):
        nonce = sign(URL).split("::")[3]
        assert len(nonce) == 32
        int(nonce, 16)

    def test_date_is_lowercase_rfc1123(self):
        assert format_signature_date(NOW) == "sat, 17 oct 2026 13:34:00 gmt"

    def test_naive_datetime_treated_as_utc(self):
        assert format_signature_date(NOW.replace(tzinfo=None)) == "sat, 17 oct 2026 13:34:00 gmt"

    def test_other_timezone_converted(self):
        plus8 = NOW.astimezone(timezone(timedelta(hours=8)))
        assert format_signature_date(plus8) == "sat, 17 oct 2026 13:34:00 gmt"


class TestSignatureDigest:
    """Digest computation over the encoded URL, date and nonce."""

    def test_known_digest(self):
        encoded = "dev.microsofttranslator.com%2Fapps%2Fendpoint%3Fapi-version%3D1.0"
        date = "sat, 17 oct 2026 13:34:00 gmt"
        payload = ("MSTranslatorAndroidApp" + encoded + date + NONCE).lower()
        expected = base64.b64encode(
            hmac.new(SIGNING_SECRET, payload.encode("utf-8"), hashlib.sha256).digest()
        ).decode()

        assert sign(URL, now=NOW, nonce=NONCE) == f"MSTranslatorAndroidApp::{expected}::{date}::{NONCE}"

    def test_deterministic_with_fixed_inputs(self):
        assert sign(URL, now=NOW, nonce=NONCE) == sign(URL, now=NOW, nonce=NONCE)

    def test_url_changes_digest(self):
        a = sign(URL, now=NOW, nonce=NONCE)
        b = sign(URL + "&x=1", now=NOW, nonce=NONCE)
        assert a.split("::")[1] != b.split("::")[1]

    def test_secret_length(self):
        assert len(SIGNING_SECRET) == 64

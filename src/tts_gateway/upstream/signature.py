"""
X-MT-Signature generation.

The endpoint service authenticates the anonymous Android client with an
HMAC-SHA256 over the target URL, the request date and a nonce:

    MSTranslatorAndroidApp::<base64 digest>::<date>::<nonce>

Every part of the payload is lower-cased before signing, including the
RFC 1123 date. The secret is the one shipped with the public app.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import uuid
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional
from urllib.parse import quote

APP_ID = "MSTranslatorAndroidApp"

SIGNING_SECRET = base64.b64decode(
    "oik6PdDdMnOXemTbwvMn9de/h9lFnfBaCWbGMMZqqoSaQaqUOqjVGm5NqsmjcBI1x+sS9ugjB55HEJWRiFXYFw=="
)

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"


def format_signature_date(now: Optional[datetime] = None) -> str:
    """RFC 1123 GMT date, lower-cased: ``sat, 17 oct 2026 13:34:00 gmt``."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    return format_datetime(now.replace(microsecond=0), usegmt=True).lower()


def sign(target_url: str, *, now: Optional[datetime] = None, nonce: Optional[str] = None) -> str:
    """
    Build the X-MT-Signature header value for ``target_url``.

    Args:
        target_url: Full URL of the request being signed, including scheme.
        now: Timestamp to sign. Defaults to the current UTC time.
        nonce: 32-char hex nonce. Defaults to a fresh uuid4.

    Returns:
        ``"MSTranslatorAndroidApp::<digest>::<date>::<nonce>"``.

    Example:
        >>> sig = sign("https://dev.microsofttranslator.com/apps/endpoint?api-version=1.0")
        >>> len(sig.split("::"))
        4
    """
    without_scheme = target_url.split("://", 1)[1]
    encoded = quote(without_scheme, safe=_URI_COMPONENT_SAFE)

    if nonce is None:
        nonce = uuid.uuid4().hex
    date = format_signature_date(now)

    payload = f"{APP_ID}{encoded}{date}{nonce}".lower()
    digest = hmac.new(SIGNING_SECRET, payload.encode("utf-8"), hashlib.sha256).digest()
    signature = base64.b64encode(digest).decode("ascii")

    return f"{APP_ID}::{signature}::{date}::{nonce}"

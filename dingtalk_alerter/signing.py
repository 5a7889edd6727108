"""Request signing for DingTalk robot webhooks.

The robot "additional signature" scheme signs ``"<timestamp>\\n<secret>"`` with
HMAC-SHA256 keyed by the secret, base64-encodes the digest and passes it as the
URL-encoded ``sign`` query parameter next to the millisecond ``timestamp``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from typing import Optional
from urllib.parse import quote_plus

from dingtalk_alerter.exceptions import SigningError


def current_millis() -> int:
    return int(time.time() * 1000)


def sign(secret: Optional[str], timestamp: int) -> str:
    """Return the URL-encoded base64 HMAC-SHA256 signature for ``timestamp``."""
    if not secret:
        raise SigningError("DingTalk signing secret is not configured")
    string_to_sign = f"{timestamp}\n{secret}"
    try:
        digest = hmac.new(
            secret.encode("utf-8"),
            string_to_sign.encode("utf-8"),
            digestmod=hashlib.sha256,
        ).digest()
    except (TypeError, ValueError) as exc:
        raise SigningError(f"Could not compute webhook signature: {exc}") from exc
    return quote_plus(base64.b64encode(digest).decode("utf-8"))


def build_signed_url(
    webhook_url: str,
    token: str,
    secret: Optional[str],
    timestamp: Optional[int] = None,
    require_signature: bool = True,
) -> str:
    """Build ``<webhook>?access_token=..&timestamp=..&sign=..``.

    Without a secret the signature parameters are omitted, unless a signature
    is required, in which case :class:`SigningError` is raised.
    """
    url = f"{webhook_url}?access_token={quote_plus(token)}"
    if not secret and not require_signature:
        return url
    if timestamp is None:
        timestamp = current_millis()
    return f"{url}&timestamp={timestamp}&sign={sign(secret, timestamp)}"

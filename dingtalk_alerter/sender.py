"""Synchronous delivery of a serialized message to the DingTalk robot webhook."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

from dingtalk_alerter.config import Settings
from dingtalk_alerter.exceptions import SigningError
from dingtalk_alerter.logging_config import configure_logging
from dingtalk_alerter.signing import build_signed_url, current_millis

logger = configure_logging().getChild("sender")

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    status_code: Optional[int] = None
    response_text: str = ""
    error: Optional[Exception] = None


def _api_errcode(resp: requests.Response) -> int:
    """DingTalk reports application errors as HTTP 200 with a non-zero errcode."""
    try:
        data = resp.json()
    except ValueError:
        return 0
    if not isinstance(data, dict):
        return 0
    try:
        return int(data.get("errcode", 0) or 0)
    except (TypeError, ValueError):
        return 0


def send(settings: Settings, body: str, now_ms: Optional[int] = None) -> DeliveryResult:
    """POST ``body`` to the signed webhook URL; best-effort, never raises on delivery errors."""
    if not settings.enabled:
        logger.debug("DingTalk token not configured; skipping send")
        return DeliveryResult(ok=False)

    timestamp = now_ms if now_ms is not None else current_millis()
    try:
        url = build_signed_url(
            settings.webhook_url,
            settings.token,
            settings.secret,
            timestamp=timestamp,
            require_signature=settings.require_signature,
        )
    except SigningError as exc:
        logger.error("Could not sign DingTalk request: %s", exc)
        return DeliveryResult(ok=False, error=exc)

    try:
        resp = requests.post(
            url,
            data=body.encode("utf-8", errors="replace"),
            headers={"Content-Type": JSON_CONTENT_TYPE},
            timeout=settings.request_timeout,
        )
    except requests.RequestException as exc:
        logger.exception("DingTalk webhook request failed")
        return DeliveryResult(ok=False, error=exc)

    logger.info("DingTalk webhook responded status=%s body=%s", resp.status_code, resp.text)
    ok = 200 <= resp.status_code < 300 and _api_errcode(resp) == 0
    if not ok:
        logger.warning("DingTalk rejected the message: status=%s body=%s", resp.status_code, resp.text)
    return DeliveryResult(ok=ok, status_code=resp.status_code, response_text=resp.text)

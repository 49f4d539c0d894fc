from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from restaurant_ops.core import config
from restaurant_ops.core.errors import AppError, TransientError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (500, 502, 503, 504)
RETRYABLE_META_ERROR_CODES = (131000,)


@dataclass(frozen=True)
class MetaCredentials:
    access_token: str
    phone_number_id: str
    api_version: str = ""
    timeout: float | None = None


@dataclass
class SendResult:
    provider_message_id: str | None
    response_payload: dict[str, Any]
    attempts: int


class MetaSendError(AppError):
    """Graph API rejected the request (4xx, not retried)."""

    status_code = 502

    def __init__(self, status_code: int, body_text: str):
        super().__init__(f"WhatsApp API error {status_code}: {body_text}")
        self.response_status = status_code
        self.body_text = body_text


def _meta_error_code(body_text: str) -> int | None:
    try:
        data = json.loads(body_text or "{}")
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    return (data.get("error") or {}).get("code")


def should_retry(status_code: int, body_text: str) -> bool:
    if status_code in RETRYABLE_STATUS_CODES:
        return True
    # erro genérico frequente da Cloud API
    return _meta_error_code(body_text) in RETRYABLE_META_ERROR_CODES


def backoff_seconds(attempt: int) -> float:
    # 1s, 2s, 4s... (máx 8s)
    sec = 1.0 * (2 ** max(0, attempt - 1))
    return min(sec, 8.0)


class MetaCloudClient:
    """Sync Graph API client. Credentials travel with each call; nothing is global."""

    def __init__(
        self,
        *,
        max_retries: int | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_retries = max(1, max_retries if max_retries is not None else config.META_SEND_MAX_RETRIES)
        self._transport = transport
        self._sleep = sleep

    def _url(self, credentials: MetaCredentials, path: str) -> str:
        version = credentials.api_version or config.META_API_VERSION
        return f"{config.META_GRAPH_BASE_URL}/{version}/{path}"

    def send_text(self, credentials: MetaCredentials, to: str, text: str) -> SendResult:
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            "type": "text",
            "text": {"preview_url": False, "body": text},
        }
        return self.post_message(credentials, payload)

    def post_message(self, credentials: MetaCredentials, payload: dict[str, Any]) -> SendResult:
        if not credentials.access_token or not credentials.phone_number_id:
            raise AppError("WhatsApp credentials are incomplete", status_code=400)

        url = self._url(credentials, f"{credentials.phone_number_id}/messages")
        headers = {"Authorization": f"Bearer {credentials.access_token}", "Content-Type": "application/json"}
        timeout = credentials.timeout or config.META_GRAPH_TIMEOUT_SECONDS

        last_error: str | None = None
        with httpx.Client(timeout=timeout, transport=self._transport) as client:
            for attempt in range(1, self.max_retries + 1):
                try:
                    response = client.post(url, headers=headers, json=payload)
                except httpx.TransportError as exc:
                    last_error = f"{type(exc).__name__}: {exc}"
                    logger.warning("graph api request failed", extra={"attempt": attempt})
                    if attempt < self.max_retries:
                        self._sleep(backoff_seconds(attempt))
                        continue
                    break

                body_text = response.text
                if 200 <= response.status_code < 300:
                    try:
                        data = response.json()
                    except json.JSONDecodeError:
                        data = {"raw": body_text}
                    provider_id = ((data.get("messages") or [{}])[0].get("id")) if isinstance(data, dict) else None
                    return SendResult(provider_message_id=provider_id, response_payload=data, attempts=attempt)

                if should_retry(response.status_code, body_text):
                    last_error = f"WhatsApp API error {response.status_code}: {body_text}"
                    logger.warning(
                        "graph api transient error",
                        extra={"attempt": attempt, "status_code": response.status_code},
                    )
                    if attempt < self.max_retries:
                        self._sleep(backoff_seconds(attempt))
                        continue
                    break

                raise MetaSendError(response.status_code, body_text)

        raise TransientError(last_error or "WhatsApp API unavailable")

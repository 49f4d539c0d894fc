from __future__ import annotations

import json
from typing import Any

REDACTED = "[REDACTED]"
SENSITIVE_KEYS = {"access_token", "verify_token", "app_secret", "authorization", "token"}


def _mask_value(value: Any) -> Any:
    if value is None:
        return None
    text = str(value)
    if len(text) <= 4:
        return "****"
    return f"****{text[-4:]}"


def sanitize_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Mask credential-like keys anywhere in a Graph API request/response."""

    def _sanitize(value: Any) -> Any:
        if isinstance(value, dict):
            return {key: _sanitize_value(key, inner) for key, inner in value.items()}
        if isinstance(value, list):
            return [_sanitize(item) for item in value]
        return value

    def _sanitize_value(key: str, value: Any) -> Any:
        if key.lower() in SENSITIVE_KEYS:
            return _mask_value(value)
        return _sanitize(value)

    return _sanitize(payload)


def _redacted_if_present(value: Any) -> str | None:
    return REDACTED if value else None


def _redact_value(value: dict[str, Any]) -> dict[str, Any]:
    redacted: dict[str, Any] = {}

    metadata = value.get("metadata")
    if isinstance(metadata, dict):
        redacted["metadata"] = {
            "phone_number_id": _redacted_if_present(metadata.get("phone_number_id")),
            "display_phone_number": _redacted_if_present(metadata.get("display_phone_number")),
        }

    messages = value.get("messages")
    if isinstance(messages, list):
        # texto, mídia, localização e contatos nunca vão para o log
        redacted["messages"] = [
            {
                "id": message.get("id"),
                "type": message.get("type"),
                "timestamp": message.get("timestamp"),
                "from": _redacted_if_present(message.get("from")),
            }
            for message in messages
            if isinstance(message, dict)
        ]

    statuses = value.get("statuses")
    if isinstance(statuses, list):
        redacted["statuses"] = [
            {"id": status.get("id"), "status": status.get("status"), "timestamp": status.get("timestamp")}
            for status in statuses
            if isinstance(status, dict)
        ]

    if value.get("message_template_id"):
        redacted["message_template_id"] = value["message_template_id"]
    if value.get("message_template_name"):
        redacted["message_template_name"] = REDACTED
    if value.get("message_template_language"):
        redacted["message_template_language"] = value["message_template_language"]

    return redacted


def redact_webhook_payload(body: Any) -> Any:
    """PII-free summary of a webhook delivery: ids, types and timestamps only."""
    if not isinstance(body, dict):
        return body

    redacted = {key: value for key, value in body.items() if key != "entry"}
    entries = body.get("entry")
    if not isinstance(entries, list):
        return redacted

    redacted["entry"] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        redacted_entry: dict[str, Any] = {"id": entry.get("id"), "time": entry.get("time")}
        changes = entry.get("changes")
        if isinstance(changes, list):
            redacted_entry["changes"] = [
                {
                    "field": change.get("field"),
                    "value": _redact_value(change.get("value") or {}) if isinstance(change.get("value") or {}, dict) else {},
                }
                for change in changes
                if isinstance(change, dict)
            ]
        redacted["entry"].append(redacted_entry)
    return redacted


def safe_json(payload: Any) -> str:
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        return "{}"

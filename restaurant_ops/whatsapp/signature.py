from __future__ import annotations

import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="
SIGNATURE_LOG_PREFIX_LENGTH = 20


def compute_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_signature(raw_body: bytes, signature_header: str | None, secret: str | None) -> bool:
    """HMAC-SHA256 check of the exact bytes Meta sent.

    Never raises: anything malformed (missing header or secret, empty body,
    wrong length, non-ASCII) is simply an invalid signature.
    """
    if not secret or not signature_header or not raw_body:
        return False

    received = signature_header.strip()
    if received.startswith(SIGNATURE_PREFIX):
        received = received[len(SIGNATURE_PREFIX):]

    try:
        expected = compute_signature(raw_body, secret).encode("ascii")
        received_bytes = received.lower().encode("ascii")
    except (TypeError, ValueError, UnicodeError):
        return False

    if len(received_bytes) != len(expected):
        return False
    return hmac.compare_digest(received_bytes, expected)


def signature_log_prefix(signature_header: str | None) -> str:
    return (signature_header or "")[:SIGNATURE_LOG_PREFIX_LENGTH]

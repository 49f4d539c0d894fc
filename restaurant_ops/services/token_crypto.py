from __future__ import annotations

import logging

from cryptography.fernet import Fernet, InvalidToken

from restaurant_ops.core import config
from restaurant_ops.core.errors import AppError

logger = logging.getLogger(__name__)

_ephemeral_key: bytes | None = None


def _get_cipher() -> Fernet:
    global _ephemeral_key
    key = config.ENCRYPTION_KEY
    if key:
        return Fernet(key.encode() if isinstance(key, str) else key)

    if not (config.IS_DEV or config.IS_TEST):
        raise RuntimeError("ENCRYPTION_KEY is required outside dev/test")

    # Chave só do processo: tokens salvos não sobrevivem a um restart
    if _ephemeral_key is None:
        logger.warning("ENCRYPTION_KEY not set; using an ephemeral key")
        _ephemeral_key = Fernet.generate_key()
    return Fernet(_ephemeral_key)


def encrypt_token(value: str | None) -> str | None:
    if not value:
        return None
    return _get_cipher().encrypt(value.encode("utf-8")).decode("utf-8")


def decrypt_token(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return _get_cipher().decrypt(value.encode("utf-8")).decode("utf-8")
    except InvalidToken as exc:
        logger.error("stored access token could not be decrypted")
        raise AppError("Stored WhatsApp token could not be decrypted") from exc

import pytest
from cryptography.fernet import Fernet

from restaurant_ops.core import config
from restaurant_ops.core.errors import AppError
from restaurant_ops.services import token_crypto


def test_tokens_round_trip_with_configured_key(monkeypatch):
    monkeypatch.setattr(config, "ENCRYPTION_KEY", Fernet.generate_key().decode())

    encrypted = token_crypto.encrypt_token("EAAG-secret")

    assert encrypted != "EAAG-secret"
    assert token_crypto.decrypt_token(encrypted) == "EAAG-secret"


def test_empty_values_pass_through():
    assert token_crypto.encrypt_token(None) is None
    assert token_crypto.decrypt_token("") is None


def test_token_from_another_key_cannot_be_read(monkeypatch):
    monkeypatch.setattr(config, "ENCRYPTION_KEY", Fernet.generate_key().decode())
    encrypted = token_crypto.encrypt_token("EAAG-secret")
    monkeypatch.setattr(config, "ENCRYPTION_KEY", Fernet.generate_key().decode())

    with pytest.raises(AppError):
        token_crypto.decrypt_token(encrypted)


def test_missing_key_outside_dev_is_an_error(monkeypatch):
    monkeypatch.setattr(config, "ENCRYPTION_KEY", "")
    monkeypatch.setattr(config, "IS_DEV", False)
    monkeypatch.setattr(config, "IS_TEST", False)

    with pytest.raises(RuntimeError):
        token_crypto.encrypt_token("EAAG-secret")

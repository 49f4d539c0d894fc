from restaurant_ops.whatsapp.signature import compute_signature, signature_log_prefix, verify_signature
from tests.fixtures_data import APP_SECRET, sign

RAW_BODY = b'{"object":"whatsapp_business_account","entry":[]}'


def test_valid_signature_is_accepted():
    assert verify_signature(RAW_BODY, sign(RAW_BODY), APP_SECRET) is True


def test_header_without_prefix_and_uppercase_hex_is_accepted():
    digest = compute_signature(RAW_BODY, APP_SECRET).upper()

    assert verify_signature(RAW_BODY, digest, APP_SECRET) is True


def test_signature_from_another_secret_is_rejected():
    assert verify_signature(RAW_BODY, sign(RAW_BODY, "other-secret"), APP_SECRET) is False


def test_any_byte_change_invalidates_the_signature():
    header = sign(RAW_BODY)
    reformatted = b'{"object": "whatsapp_business_account", "entry": []}'

    assert verify_signature(reformatted, header, APP_SECRET) is False


def test_malformed_inputs_never_raise():
    header = sign(RAW_BODY)

    assert verify_signature(RAW_BODY, None, APP_SECRET) is False
    assert verify_signature(RAW_BODY, "", APP_SECRET) is False
    assert verify_signature(RAW_BODY, header, "") is False
    assert verify_signature(RAW_BODY, header, None) is False
    assert verify_signature(b"", header, APP_SECRET) is False
    assert verify_signature(RAW_BODY, "sha256=abc", APP_SECRET) is False
    assert verify_signature(RAW_BODY, "sha256=" + "é" * 64, APP_SECRET) is False


def test_log_prefix_is_truncated():
    header = sign(RAW_BODY)

    assert signature_log_prefix(header) == header[:20]
    assert signature_log_prefix(None) == ""

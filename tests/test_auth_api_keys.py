import pytest

from agora.auth.api_keys import generate_api_key, hash_api_key, verify_api_key


def test_api_key_hash_roundtrip() -> None:
    salt, h = hash_api_key("agent-key", iterations=1_000)
    assert verify_api_key("agent-key", salt_hex=salt, hash_hex=h, iterations=1_000) is True
    assert verify_api_key("other-key", salt_hex=salt, hash_hex=h, iterations=1_000) is False


def test_api_key_hash_is_salted() -> None:
    salt_a, hash_a = hash_api_key("same-key", iterations=1_000)
    salt_b, hash_b = hash_api_key("same-key", iterations=1_000)
    assert salt_a != salt_b
    assert hash_a != hash_b


def test_generated_key_is_64_hex_chars() -> None:
    key = generate_api_key()
    assert len(key) == 64
    int(key, 16)
    assert generate_api_key() != key


def test_hash_rejects_empty_key() -> None:
    with pytest.raises(ValueError):
        hash_api_key("", iterations=1_000)


def test_verify_rejects_revoked_or_malformed_records() -> None:
    salt, h = hash_api_key("agent-key", iterations=1_000)
    assert verify_api_key("agent-key", salt_hex="", hash_hex="", iterations=1_000) is False
    assert verify_api_key("agent-key", salt_hex="zz", hash_hex=h, iterations=1_000) is False
    assert verify_api_key("agent-key", salt_hex=salt, hash_hex=h, iterations=0) is False
    assert verify_api_key("", salt_hex=salt, hash_hex=h, iterations=1_000) is False

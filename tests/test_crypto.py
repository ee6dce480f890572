import pytest
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from aelira.voice.crypto import VoiceCrypto

KEY = bytes(range(32))
NONCE = bytes(12)


def test_encrypt_round_trips_through_aes_gcm():
    crypto = VoiceCrypto(KEY)
    encrypted = crypto.encrypt(b"opus frame", NONCE, b"header")
    assert AESGCM(KEY).decrypt(NONCE, encrypted, b"header") == b"opus frame"


def test_ciphertext_carries_tag():
    crypto = VoiceCrypto(KEY)
    packet = b"\x01\x02\x03\x04\x05"
    assert len(crypto.encrypt(packet, NONCE, b"")) == len(packet) + 16


def test_encrypt_is_deterministic_for_same_nonce():
    crypto = VoiceCrypto(KEY)
    first = crypto.encrypt(b"abc", NONCE, b"ad")
    second = crypto.encrypt(b"abc", NONCE, b"ad")
    assert first == second


def test_associated_data_is_authenticated():
    crypto = VoiceCrypto(KEY)
    encrypted = crypto.encrypt(b"abc", NONCE, b"one")
    assert AESGCM(KEY).decrypt(NONCE, encrypted, b"one") == b"abc"
    with pytest.raises(InvalidTag):
        AESGCM(KEY).decrypt(NONCE, encrypted, b"two")


def test_key_accepts_list_of_ints():
    crypto = VoiceCrypto(list(KEY))
    encrypted = crypto.encrypt(b"xyz", NONCE, b"")
    assert AESGCM(KEY).decrypt(NONCE, encrypted, b"") == b"xyz"


@pytest.mark.parametrize("size", [0, 16, 31, 33])
def test_wrong_key_size_rejected(size):
    with pytest.raises(ValueError):
        VoiceCrypto(bytes(size))


def test_wrong_nonce_size_rejected():
    crypto = VoiceCrypto(KEY)
    with pytest.raises(ValueError):
        crypto.encrypt(b"abc", bytes(8), b"")
"""AES-256-GCM encryption of voice packets."""

from __future__ import annotations

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

KEY_SIZE = 32
NONCE_SIZE = 12


class VoiceCrypto:
    """Encrypts Opus payloads with the session's secret key."""

    def __init__(self, secret_key: bytes) -> None:
        key = bytes(secret_key)
        if len(key) != KEY_SIZE:
            raise ValueError(f"secret key must be {KEY_SIZE} bytes, got {len(key)}")
        self._cipher = AESGCM(key)

    def encrypt(self, packet: bytes, nonce: bytes, ad: bytes) -> bytes:
        """Return the ciphertext followed by the 16-byte authentication tag."""
        nonce = bytes(nonce)
        if len(nonce) != NONCE_SIZE:
            raise ValueError(f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
        return self._cipher.encrypt(nonce, bytes(packet), bytes(ad))
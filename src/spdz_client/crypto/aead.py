"""AES-GCM decryption of proxy payloads.

Encrypted proxy output is framed as ``iv (12 bytes) || ciphertext || tag (16 bytes)``.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from spdz_client.errors import CryptoError

IV_BYTES = 12
TAG_BYTES = 16
AES_KEY_SIZES = (16, 24, 32)


@dataclass
class AeadCiphertext:
    iv: bytes
    ciphertext: bytes
    tag: bytes

    def to_bytes(self) -> bytes:
        return self.iv + self.ciphertext + self.tag

    @classmethod
    def from_bytes(cls, data: bytes) -> "AeadCiphertext":
        if len(data) < IV_BYTES + TAG_BYTES:
            raise CryptoError(f"Encrypted payload too short ({len(data)} bytes)")
        return cls(iv=data[:IV_BYTES], ciphertext=data[IV_BYTES:-TAG_BYTES], tag=data[-TAG_BYTES:])


def _validate_key(key: bytes) -> None:
    if len(key) not in AES_KEY_SIZES:
        raise CryptoError("AES-GCM key must be 128/192/256 bits")


def aes_gcm_encrypt(key: bytes, plaintext: bytes, aad: bytes | None = None, iv: bytes | None = None) -> AeadCiphertext:
    _validate_key(key)
    iv = iv or os.urandom(IV_BYTES)
    aesgcm = AESGCM(key)
    combined = aesgcm.encrypt(iv, plaintext, aad or b"")
    return AeadCiphertext(iv=iv, ciphertext=combined[:-TAG_BYTES], tag=combined[-TAG_BYTES:])


def aes_gcm_decrypt(key: bytes, iv: bytes, ciphertext: bytes, tag: bytes, aad: bytes | None = None) -> bytes:
    _validate_key(key)
    aesgcm = AESGCM(key)
    try:
        return aesgcm.decrypt(iv, ciphertext + tag, aad or b"")
    except InvalidTag as exc:
        raise CryptoError("Authentication failed while decrypting proxy payload") from exc


class CryptoProvider(ABC):
    """Decrypts a payload received from one proxy."""

    @abstractmethod
    def decrypt(self, key: bytes, data: bytes) -> bytes:
        """Return the plaintext or raise CryptoError."""
        pass


class AesGcmCryptoProvider(CryptoProvider):
    """CryptoProvider for AES-GCM framed payloads."""

    def __init__(self, aad: bytes | None = None) -> None:
        self.aad = aad

    def decrypt(self, key: bytes, data: bytes) -> bytes:
        frame = AeadCiphertext.from_bytes(data)
        return aes_gcm_decrypt(key, frame.iv, frame.ciphertext, frame.tag, aad=self.aad)

    def encrypt(self, key: bytes, plaintext: bytes) -> bytes:
        """Produce a framed payload as a proxy would send it."""
        return aes_gcm_encrypt(key, plaintext, aad=self.aad).to_bytes()

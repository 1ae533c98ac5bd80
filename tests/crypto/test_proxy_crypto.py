import binascii

import pytest

from spdz_client.crypto import (
    AeadCiphertext,
    AesGcmCryptoProvider,
    aes_gcm_decrypt,
    aes_gcm_encrypt,
    decode_public_key_hex,
    derive_proxy_key,
    generate_client_keypair,
    load_private_key_bytes,
)
from spdz_client.errors import CryptoError


def test_aes_gcm_matches_known_vector() -> None:
    key = binascii.unhexlify("00000000000000000000000000000000")
    iv = binascii.unhexlify("000000000000000000000000")
    plaintext = binascii.unhexlify("00000000000000000000000000000000")
    expected_ciphertext = binascii.unhexlify("0388dace60b6a392f328c2b971b2fe78")
    expected_tag = binascii.unhexlify("ab6e47d42cec13bdf53a67b21257bddf")

    ct = aes_gcm_encrypt(key, plaintext, aad=None, iv=iv)
    assert ct.ciphertext == expected_ciphertext
    assert ct.tag == expected_tag
    assert aes_gcm_decrypt(key, iv, ct.ciphertext, ct.tag) == plaintext


def test_provider_decrypts_framed_payload() -> None:
    key = b"\x07" * 32
    provider = AesGcmCryptoProvider()
    framed = provider.encrypt(key, b"share bytes")
    assert len(framed) == 12 + len(b"share bytes") + 16
    assert provider.decrypt(key, framed) == b"share bytes"


def test_provider_rejects_wrong_key() -> None:
    provider = AesGcmCryptoProvider()
    framed = provider.encrypt(b"\x01" * 16, b"data")
    with pytest.raises(CryptoError):
        provider.decrypt(b"\x02" * 16, framed)


def test_provider_rejects_short_payload_and_bad_key_length() -> None:
    provider = AesGcmCryptoProvider()
    with pytest.raises(CryptoError):
        provider.decrypt(b"\x01" * 16, b"short")
    with pytest.raises(CryptoError):
        provider.decrypt(b"\x01" * 10, b"\x00" * 40)


def test_frame_round_trip_fields() -> None:
    frame = AeadCiphertext(iv=b"i" * 12, ciphertext=b"body", tag=b"t" * 16)
    assert AeadCiphertext.from_bytes(frame.to_bytes()) == frame


def test_client_and_proxy_derive_same_key() -> None:
    client = generate_client_keypair()
    proxy = generate_client_keypair()
    client_side = derive_proxy_key(client.private_key, proxy.public_key)
    proxy_side = derive_proxy_key(proxy.private_key, client.public_key)
    assert client_side == proxy_side
    assert len(client_side) == 32


def test_public_key_hex_helpers() -> None:
    pair = generate_client_keypair()
    assert len(pair.public_key_hex) == 64
    assert decode_public_key_hex(pair.public_key_hex) == pair.public_key
    assert load_private_key_bytes(pair.private_bytes()).public_key == pair.public_key
    with pytest.raises(ValueError):
        decode_public_key_hex("abcd")
    with pytest.raises(ValueError):
        decode_public_key_hex("zz" * 32)

from .aead import AES_KEY_SIZES, AeadCiphertext, AesGcmCryptoProvider, CryptoProvider, aes_gcm_decrypt, aes_gcm_encrypt
from .dh import (
    ClientKeyPair,
    decode_public_key_hex,
    derive_proxy_key,
    generate_client_keypair,
    load_private_key_bytes,
)

__all__ = [
    "AES_KEY_SIZES",
    "AeadCiphertext",
    "AesGcmCryptoProvider",
    "CryptoProvider",
    "aes_gcm_encrypt",
    "aes_gcm_decrypt",
    "ClientKeyPair",
    "decode_public_key_hex",
    "derive_proxy_key",
    "generate_client_keypair",
    "load_private_key_bytes",
]

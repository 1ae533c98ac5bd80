from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import x25519
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

PUBLIC_KEY_BYTES = 32


@dataclass
class ClientKeyPair:
    """X25519 keypair; the public half is sent to proxies on connect."""

    private_key: x25519.X25519PrivateKey
    public_key: bytes

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()

    def private_bytes(self) -> bytes:
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )


def generate_client_keypair() -> ClientKeyPair:
    private_key = x25519.X25519PrivateKey.generate()
    public_bytes = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return ClientKeyPair(private_key=private_key, public_key=public_bytes)


def load_private_key_bytes(data: bytes) -> ClientKeyPair:
    private_key = x25519.X25519PrivateKey.from_private_bytes(data)
    public_bytes = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return ClientKeyPair(private_key=private_key, public_key=public_bytes)


def decode_public_key_hex(value: str) -> bytes:
    """Parse a hex encoded X25519 public key (64 hex characters)."""
    try:
        data = bytes.fromhex(value)
    except ValueError as exc:
        raise ValueError(f"Public key is not valid hex: {exc}") from exc
    if len(data) != PUBLIC_KEY_BYTES:
        raise ValueError(f"Public key must be {PUBLIC_KEY_BYTES} bytes, got {len(data)}")
    return data


def derive_proxy_key(
    private_key: x25519.X25519PrivateKey, proxy_public_bytes: bytes, length: int = 32, info: bytes = b"spdz-client/proxy"
) -> bytes:
    """
    Derive the symmetric key shared with one proxy via X25519 + HKDF-SHA256.
    """
    peer_pub = x25519.X25519PublicKey.from_public_bytes(proxy_public_bytes)
    shared = private_key.exchange(peer_pub)
    hkdf = HKDF(algorithm=hashes.SHA256(), length=length, salt=None, info=info)
    return hkdf.derive(shared)

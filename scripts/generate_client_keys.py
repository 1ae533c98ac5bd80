#!/usr/bin/env python3
"""Generate a client X25519 key pair and a client config with per-proxy encryption keys.

Usage:
  python scripts/generate_client_keys.py \
      --proxy http://spdzproxy0=<proxy0 public key hex> \
      --proxy http://spdzproxy1=<proxy1 public key hex> \
      --output config/client-config.json
"""

import argparse
import json
from pathlib import Path
from typing import List, Tuple

from spdz_client.config import DEFAULT_API_ROOT, ClientConfig, ProxyConfig
from spdz_client.crypto import decode_public_key_hex, derive_proxy_key, generate_client_keypair


def parse_proxy_arg(value: str) -> Tuple[str, str]:
    """Split ``URL=PUBLIC_KEY_HEX``; the key part is optional."""
    url, sep, key = value.rpartition("=")
    if not sep or "://" not in url:
        return value, ""
    return url, key


def build_config(proxies: List[Tuple[str, str]], api_root: str, key_dir: Path) -> ClientConfig:
    keypair = generate_client_keypair()
    key_dir.mkdir(parents=True, exist_ok=True)
    sk_path = key_dir / "client_sk.bin"
    pk_path = key_dir / "client_pk.hex"
    sk_path.write_bytes(keypair.private_bytes())
    sk_path.chmod(0o600)
    pk_path.write_text(keypair.public_key_hex + "\n")
    print("Generated client keys:")
    print(f"  Private key: {sk_path}")
    print(f"  Public key:  {pk_path}")

    proxy_configs = []
    for url, proxy_key_hex in proxies:
        if proxy_key_hex:
            key = derive_proxy_key(keypair.private_key, decode_public_key_hex(proxy_key_hex))
            proxy_configs.append(ProxyConfig(url=url, encrypted=True, encryption_key=key))
        else:
            proxy_configs.append(ProxyConfig(url=url))
    return ClientConfig(proxies=proxy_configs, api_root=api_root, client_public_key=keypair.public_key_hex)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate SPDZ client keys and config")
    parser.add_argument(
        "--proxy",
        action="append",
        required=True,
        help="Proxy as URL or URL=PUBLIC_KEY_HEX (repeat once per party, in party order)",
    )
    parser.add_argument(
        "--api-root",
        type=str,
        default=DEFAULT_API_ROOT,
        help=f"API path on each proxy (default: {DEFAULT_API_ROOT})",
    )
    parser.add_argument(
        "--key-dir",
        type=Path,
        default=Path("config/keys"),
        help="Output directory for the client key pair (default: config/keys)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("config/client-config.json"),
        help="Client config to write (default: config/client-config.json)",
    )
    args = parser.parse_args()

    proxies = [parse_proxy_arg(p) for p in args.proxy]
    config = build_config(proxies, args.api_root, args.key_dir)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(json.dumps(config.to_dict(), indent=2))
    encrypted = sum(1 for p in config.proxies if p.encrypted)
    print(f"\nWrote config for {len(config.proxies)} proxies ({encrypted} encrypted) to {args.output}")


if __name__ == "__main__":
    main()

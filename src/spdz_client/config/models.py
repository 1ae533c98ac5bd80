import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

DEFAULT_API_ROOT = "/spdzapi"
YAML_SUFFIXES = {".yaml", ".yml"}


def _parse_key(value: Union[str, bytes, None], name: str) -> Optional[bytes]:
    if value is None or value == "":
        return None
    if isinstance(value, bytes):
        key = value
    else:
        try:
            key = bytes.fromhex(str(value))
        except ValueError as exc:
            raise ValueError(f"{name} must be a hex string: {exc}") from exc
    if len(key) not in (16, 24, 32):
        raise ValueError(f"{name} must be 16, 24 or 32 bytes, got {len(key)}")
    return key


def _read_mapping(path: Path) -> Dict:
    text = Path(path).read_text()
    if Path(path).suffix.lower() in YAML_SUFFIXES:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Config at {path} must be a mapping")
    return data


@dataclass
class Timeouts:
    consume_wait_ms: int = 0
    poll_backoff_seconds: float = 0.5
    poll_retries: int = 10

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "Timeouts":
        base = cls()
        if not data:
            return base
        for key, value in data.items():
            if not hasattr(base, key):
                raise ValueError(f"Unknown timeout key '{key}'")
            if value < 0:
                raise ValueError(f"Timeout '{key}' must not be negative")
            current = getattr(base, key)
            setattr(base, key, type(current)(value))
        return base


@dataclass
class ProxyConfig:
    """One party's proxy: where it lives and how its output is protected."""

    url: str
    encrypted: bool = False
    encryption_key: Optional[bytes] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProxyConfig":
        try:
            url = str(data["url"]).strip()
        except KeyError as exc:
            raise ValueError(f"Proxy config missing required field {exc}") from exc
        if not url:
            raise ValueError("Proxy url cannot be empty")
        encrypted = bool(data.get("encrypted", False))
        key = _parse_key(data.get("encryption_key"), f"encryption_key for {url}")
        if encrypted and key is None:
            raise ValueError(f"Proxy '{url}' is encrypted but has no encryption_key")
        return cls(url=url, encrypted=encrypted, encryption_key=key)


@dataclass
class ClientConfig:
    proxies: List[ProxyConfig]
    api_root: str = DEFAULT_API_ROOT
    client_id: Optional[str] = None
    client_public_key: Optional[str] = None
    max_workers: Optional[int] = None
    log_level: str = "INFO"
    timeouts: Timeouts = field(default_factory=Timeouts)

    @property
    def proxy_urls(self) -> List[str]:
        return [proxy.url for proxy in self.proxies]

    @property
    def worker_count(self) -> int:
        return self.max_workers or max(1, len(self.proxies))

    @classmethod
    def from_file(cls, path: Path) -> "ClientConfig":
        """Load from a JSON file, or YAML when the suffix is .yaml/.yml."""
        return cls.from_dict(_read_mapping(path))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClientConfig":
        try:
            raw_proxies = list(data["proxies"])
        except KeyError as exc:
            raise ValueError(f"Client config missing required field {exc}") from exc
        if not raw_proxies:
            raise ValueError("Client config must include at least one proxy")
        proxies = [
            ProxyConfig.from_mapping({"url": p} if isinstance(p, str) else p) for p in raw_proxies
        ]
        urls = [p.url for p in proxies]
        if len(set(urls)) != len(urls):
            raise ValueError("Proxy urls must be unique")
        api_root = str(data.get("api_root", DEFAULT_API_ROOT))
        if not api_root.startswith("/"):
            raise ValueError("api_root must start with '/'")
        client_id = data.get("client_id")
        client_public_key = data.get("client_public_key")
        if client_public_key is not None:
            client_public_key = str(client_public_key).lower()
            try:
                if len(bytes.fromhex(client_public_key)) != 32:
                    raise ValueError("client_public_key must be 32 bytes (64 hex characters)")
            except ValueError as exc:
                raise ValueError(f"Invalid client_public_key: {exc}") from exc
        max_workers = data.get("max_workers")
        if max_workers is not None:
            max_workers = int(max_workers)
            if max_workers <= 0:
                raise ValueError("max_workers must be positive")
        return cls(
            proxies=proxies,
            api_root=api_root,
            client_id=str(client_id) if client_id is not None else None,
            client_public_key=client_public_key,
            max_workers=max_workers,
            log_level=str(data.get("log_level", "INFO")).upper(),
            timeouts=Timeouts.from_mapping(data.get("timeouts")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, with keys hex encoded."""
        data: Dict[str, Any] = {
            "api_root": self.api_root,
            "proxies": [
                {
                    "url": p.url,
                    "encrypted": p.encrypted,
                    **({"encryption_key": p.encryption_key.hex()} if p.encryption_key else {}),
                }
                for p in self.proxies
            ],
            "log_level": self.log_level,
            "timeouts": {
                "consume_wait_ms": self.timeouts.consume_wait_ms,
                "poll_backoff_seconds": self.timeouts.poll_backoff_seconds,
                "poll_retries": self.timeouts.poll_retries,
            },
        }
        if self.client_id is not None:
            data["client_id"] = self.client_id
        if self.client_public_key is not None:
            data["client_public_key"] = self.client_public_key
        if self.max_workers is not None:
            data["max_workers"] = self.max_workers
        return data

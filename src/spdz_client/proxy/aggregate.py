"""
Fan-out of proxy operations across every SPDZ party.

Each operation runs one task per proxy on a thread pool and returns results
in the order of the proxy list given by the caller. connect, check and
disconnect always return a full outcome list; consume and send raise on the
first unrecoverable failure because a partial set of shares is useless.
"""

import base64
import json
import time
from concurrent import futures
from typing import Any, Callable, List, Mapping, Optional, Sequence, TypeVar, Union

from spdz_client.config import ClientConfig, ProxyConfig
from spdz_client.crypto import AES_KEY_SIZES, AesGcmCryptoProvider, CryptoProvider
from spdz_client.errors import (
    CryptoError,
    NoContentError,
    NotConnectedError,
    ProxyError,
    TransportError,
    ValidationError,
)
from spdz_client.utils import MetricsSink, RetryError, get_logger, retry

from .sessions import SessionStore
from .status import ProxyOutcome, ProxyStatus, all_connected
from .transport import ProxyTransport

logger = get_logger("proxy.aggregate")

T = TypeVar("T")
ProxyRecord = Union[ProxyConfig, Mapping[str, Any]]
Encodable = Union[bytes, bytearray, memoryview]


def verify_required_keys(records: Sequence[Any], *keys: str) -> bool:
    """True if every record exposes a non-empty value for each of ``keys``."""
    for record in records:
        for key in keys:
            if isinstance(record, Mapping):
                value = record.get(key)
            else:
                value = getattr(record, key, None)
            if value is None or value == "":
                return False
    return True


def _check_key_size(key: bytes, url: str) -> bytes:
    if len(key) not in AES_KEY_SIZES:
        raise ValidationError(f"encryptionKey for proxy {url} must be 16, 24 or 32 bytes, got {len(key)}")
    return key


def _as_key(value: Any, url: str) -> Optional[bytes]:
    if value is None or value == "":
        return None
    if isinstance(value, (bytes, bytearray)):
        return _check_key_size(bytes(value), url)
    try:
        key = bytes.fromhex(str(value))
    except ValueError as exc:
        raise ValidationError(f"encryptionKey for proxy {url} is not valid hex") from exc
    return _check_key_size(key, url)


def _normalize_records(records: Sequence[ProxyRecord]) -> List[ProxyConfig]:
    if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
        raise ValidationError("Proxy list must be a sequence of proxy records.")
    if not verify_required_keys(records, "url"):
        raise ValidationError("Each spdzProxyList entry must contain keys: url.")
    normalized: List[ProxyConfig] = []
    for record in records:
        if isinstance(record, ProxyConfig):
            normalized.append(record)
            continue
        if isinstance(record, Mapping):
            url = str(record["url"])
            encrypted = record.get("encrypted", False)
            key = record.get("encryption_key", record.get("encryptionKey"))
        else:
            url = str(record.url)
            encrypted = getattr(record, "encrypted", False)
            key = getattr(record, "encryption_key", None)
        normalized.append(ProxyConfig(url=url, encrypted=bool(encrypted), encryption_key=_as_key(key, url)))
    _ensure_unique([p.url for p in normalized])
    return normalized


def _normalize_urls(urls: Sequence[str]) -> List[str]:
    if isinstance(urls, (str, bytes)) or not isinstance(urls, Sequence):
        raise ValidationError("Proxy url list must be a sequence of urls.")
    for url in urls:
        if not isinstance(url, str) or not url:
            raise ValidationError(f"Invalid SPDZ proxy url {url!r}.")
    _ensure_unique(list(urls))
    return list(urls)


def _ensure_unique(urls: List[str]) -> None:
    if len(set(urls)) != len(urls):
        raise ValidationError("SPDZ proxy urls must be unique within one call.")


def encode_inputs(inputs: Sequence[Encodable]) -> str:
    """Serialize native-encoded input values as a JSON list of base64 strings."""
    encoded = []
    for value in inputs:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise ValidationError(f"Inputs must be bytes-like, got {type(value).__name__}")
        encoded.append(base64.b64encode(bytes(value)).decode("ascii"))
    return json.dumps(encoded)


class ProxyAggregator:
    """
    Coordinates one logical client across all SPDZ proxies.

    Holds the session id issued by each proxy between calls. Connect rounds
    for the same aggregator must not overlap: ``connect_all`` resets the
    session store before repopulating it.
    """

    def __init__(
        self,
        transport: ProxyTransport,
        crypto: Optional[CryptoProvider] = None,
        sessions: Optional[SessionStore] = None,
        metrics: Optional[MetricsSink] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.transport = transport
        self.crypto = crypto or AesGcmCryptoProvider()
        self.sessions = sessions if sessions is not None else SessionStore()
        self.metrics = metrics
        self._executor = futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="spdz-proxy")

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: ProxyTransport,
        crypto: Optional[CryptoProvider] = None,
        metrics: Optional[MetricsSink] = None,
    ) -> "ProxyAggregator":
        return cls(transport, crypto=crypto, metrics=metrics, max_workers=config.worker_count)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "ProxyAggregator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    all_connected = staticmethod(all_connected)

    # Per-proxy request wrapper

    def _request(self, operation: str, url: str, call: Callable[[], T]) -> T:
        """Run one proxy call, recording metrics and mapping unexpected errors to TransportError."""
        start = time.monotonic()
        status = "ok"
        try:
            return call()
        except NoContentError:
            status = "no_content"
            raise
        except ProxyError:
            status = "error"
            raise
        except Exception as exc:  # noqa: BLE001
            status = "error"
            raise TransportError(f"{operation} failed for SPDZ proxy {url}: {exc}", url=url) from exc
        finally:
            if self.metrics is not None:
                self.metrics.emit_counter("proxy_requests", operation=operation, proxy=url, status=status)
                self.metrics.emit_timer("proxy_request_seconds", time.monotonic() - start, operation=operation)

    # Fan-out strategies

    def _join_all(self, task: Callable[[int, Any], T], items: Sequence[Any]) -> List[T]:
        """Run ``task`` for every item and wait for all of them."""
        pending = [self._executor.submit(task, position, item) for position, item in enumerate(items)]
        futures.wait(pending, return_when=futures.ALL_COMPLETED)
        return [f.result() for f in pending]

    def _until_first_failure(self, task: Callable[[int, Any], T], items: Sequence[Any]) -> List[T]:
        """
        Run ``task`` for every item; raise as soon as any task fails hard.

        NoContentError is only raised once every other task has finished
        without a hard failure.
        """
        submitted = [self._executor.submit(task, position, item) for position, item in enumerate(items)]
        pending = set(submitted)
        no_content: Optional[BaseException] = None
        while pending:
            done, pending = futures.wait(pending, return_when=futures.FIRST_EXCEPTION)
            for f in submitted:
                if f not in done or f.exception() is None:
                    continue
                if isinstance(f.exception(), NoContentError):
                    no_content = no_content or f.exception()
                    continue
                for other in pending:
                    other.cancel()
                raise f.exception()
        if no_content is not None:
            raise no_content
        return [f.result() for f in submitted]

    def _require_sessions(self, proxies: Sequence[ProxyConfig]) -> None:
        for proxy in proxies:
            if not self.sessions.exists(proxy.url):
                raise NotConnectedError(f"Not connected to SPDZ for proxy {proxy.url}.", url=proxy.url)

    def _record_connected(self, outcomes: List[ProxyOutcome]) -> None:
        if self.metrics is not None:
            self.metrics.emit_gauge("proxies_connected", sum(1 for o in outcomes if o.connected))

    # Operations

    def connect_all(
        self,
        urls: Sequence[str],
        api_root: str,
        session_id: Optional[str] = None,
        public_key: Optional[str] = None,
    ) -> List[ProxyOutcome]:
        """
        Run connection setup between every proxy and its SPDZ engine.

        Replaces any sessions from a previous round. Never raises for a
        per-proxy failure; inspect the outcomes (or use ``all_connected``).

        Args:
            urls: One url per SPDZ proxy; result positions follow this order.
            api_root: API path on the proxy, e.g. ``/spdzapi``.
            session_id: Optional client id shared by all proxies; otherwise each proxy generates one.
            public_key: Optional hex encoded client public key, enabling encrypted output.

        Returns:
            One ``ProxyOutcome`` per url with status CONNECTED (payload holds
            the session id) or FAILURE.
        """
        urls = _normalize_urls(urls)
        self.sessions.reset()

        def connect(position: int, url: str) -> ProxyOutcome:
            try:
                generated = self._request(
                    "connect", url, lambda: self.transport.connect(url, api_root, session_id, public_key)
                )
                if not generated:
                    raise TransportError(f"SPDZ proxy {url} returned no session id", url=url)
            except ProxyError as exc:
                self.sessions.remove(url)
                logger.debug("Unable to successfully run connection setup for %s: %s", url, exc)
                return ProxyOutcome(position=position, status=ProxyStatus.FAILURE, detail=str(exc))
            self.sessions.store(url, generated)
            return ProxyOutcome(position=position, status=ProxyStatus.CONNECTED, payload=generated)

        outcomes = self._join_all(connect, urls)
        connected = sum(1 for o in outcomes if o.connected)
        logger.info("Connected to %d/%d SPDZ proxies", connected, len(outcomes))
        self._record_connected(outcomes)
        return outcomes

    def check_all(self, urls: Sequence[str], api_root: str) -> List[ProxyOutcome]:
        """Check the engine connection behind each proxy for this client.

        Proxies without a session report FAILURE without being contacted.
        """
        urls = _normalize_urls(urls)

        def check(position: int, url: str) -> ProxyOutcome:
            if not self.sessions.exists(url):
                return ProxyOutcome(position=position, status=ProxyStatus.FAILURE, detail="no session")
            try:
                self._request("check", url, lambda: self.transport.check(url, api_root, self.sessions.get(url)))
            except ProxyError as exc:
                logger.debug("Status check failed for %s: %s", url, exc)
                return ProxyOutcome(position=position, status=ProxyStatus.DISCONNECTED, detail=str(exc))
            return ProxyOutcome(position=position, status=ProxyStatus.CONNECTED)

        outcomes = self._join_all(check, urls)
        self._record_connected(outcomes)
        return outcomes

    def disconnect_all(self, proxies: Sequence[ProxyRecord], api_root: str) -> List[ProxyOutcome]:
        """Close the engine connection behind each proxy.

        The local session is dropped even if the proxy cannot be reached, so
        every outcome is DISCONNECTED. Safe to call repeatedly.
        """
        records = _normalize_records(proxies)

        def disconnect(position: int, proxy: ProxyConfig) -> ProxyOutcome:
            url = proxy.url
            if not self.sessions.exists(url):
                return ProxyOutcome(position=position, status=ProxyStatus.DISCONNECTED)
            detail = None
            try:
                self._request(
                    "disconnect", url, lambda: self.transport.disconnect(url, api_root, self.sessions.get(url))
                )
            except ProxyError as exc:
                logger.warning("Disconnect from %s failed, dropping session anyway: %s", url, exc)
                detail = str(exc)
            finally:
                self.sessions.remove(url)
            return ProxyOutcome(position=position, status=ProxyStatus.DISCONNECTED, detail=detail)

        outcomes = self._join_all(disconnect, records)
        logger.info("Disconnected from %d SPDZ proxies", len(outcomes))
        return outcomes

    def consume_all(self, proxies: Sequence[ProxyRecord], api_root: str, wait_timeout_ms: int = 0) -> List[bytes]:
        """
        Consume the next binary output from every proxy.

        Encrypted proxies have their payload decrypted with their own
        ``encryption_key``.

        Returns:
            One buffer per proxy, in input order.

        Raises:
            ValidationError: malformed proxy list or negative wait.
            NotConnectedError: a proxy has no session; nothing is consumed.
            NoContentError: a proxy had no output within ``wait_timeout_ms``; retry later.
            TransportError: a proxy request failed.
            CryptoError: a payload could not be decrypted.
        """
        records = _normalize_records(proxies)
        if isinstance(wait_timeout_ms, bool) or not isinstance(wait_timeout_ms, int):
            raise ValidationError(f"wait_timeout_ms must be an integer, got {wait_timeout_ms!r}")
        if wait_timeout_ms < 0:
            raise ValidationError("wait_timeout_ms must not be negative")
        for proxy in records:
            if proxy.encrypted and not proxy.encryption_key:
                raise ValidationError(f"Proxy {proxy.url} is encrypted but has no encryption key.")
            if proxy.encryption_key is not None:
                _check_key_size(proxy.encryption_key, proxy.url)
        self._require_sessions(records)

        def consume(position: int, proxy: ProxyConfig) -> bytes:
            url = proxy.url
            payload = self._request(
                "consume",
                url,
                lambda: self.transport.consume(url, api_root, self.sessions.get(url), wait_timeout_ms),
            )
            if self.metrics is not None:
                self.metrics.emit_counter("proxy_bytes_received", len(payload), proxy=url)
            if not proxy.encrypted:
                return payload
            return self._decrypt(proxy, payload)

        return self._until_first_failure(consume, records)

    def _decrypt(self, proxy: ProxyConfig, payload: bytes) -> bytes:
        try:
            return self.crypto.decrypt(proxy.encryption_key, payload)
        except CryptoError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise CryptoError(f"Unable to decrypt output from SPDZ proxy {proxy.url}: {exc}") from exc

    def send_all(self, proxies: Sequence[ProxyRecord], api_root: str, inputs: Sequence[Encodable]) -> None:
        """
        Send the same encoded inputs to every proxy.

        Each engine splits the input using its own share, so all proxies
        receive identical material. Raises on the first proxy failure.
        """
        records = _normalize_records(proxies)
        payload = encode_inputs(inputs)
        self._require_sessions(records)

        def send(position: int, proxy: ProxyConfig) -> None:
            url = proxy.url
            self._request("send", url, lambda: self.transport.send(url, api_root, self.sessions.get(url), payload))
            if self.metrics is not None:
                self.metrics.emit_counter("proxy_bytes_sent", len(payload), proxy=url)

        self._until_first_failure(send, records)
        logger.debug("Sent %d inputs to %d SPDZ proxies", len(inputs), len(records))


def poll_consume(
    aggregator: ProxyAggregator,
    proxies: Sequence[ProxyRecord],
    api_root: str,
    wait_timeout_ms: int = 0,
    retries: int = 10,
    backoff: float = 0.5,
) -> List[bytes]:
    """
    Call ``consume_all`` until output is ready at every proxy.

    Only NoContentError is retried; any other failure propagates at once.
    Raises RetryError once ``retries`` are exhausted.
    """
    try:
        return retry(
            lambda: aggregator.consume_all(proxies, api_root, wait_timeout_ms),
            retries=retries,
            backoff=backoff,
            exceptions=(NoContentError,),
        )
    except RetryError:
        logger.warning("No output from SPDZ proxies after %d retries", retries)
        raise

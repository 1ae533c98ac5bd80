"""
Transport abstraction for talking to a single SPDZ proxy, plus an in-memory implementation.

The aggregator only depends on ``ProxyTransport``; network implementations
live with the application. ``MockProxyTransport`` simulates a set of proxies
for tests and local development.
"""

import threading
import time
import uuid
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Set, Tuple

from spdz_client.errors import NoContentError, TransportError


class ProxyTransport(ABC):
    """Operations exposed by one SPDZ proxy."""

    @abstractmethod
    def connect(
        self,
        url: str,
        api_root: str,
        session_id: Optional[str] = None,
        public_key: Optional[str] = None,
    ) -> str:
        """Ask the proxy to connect to its engine. Returns the session id the proxy will use."""
        pass

    @abstractmethod
    def check(self, url: str, api_root: str, session_id: str) -> None:
        """Raise if the proxy no longer holds an engine connection for ``session_id``."""
        pass

    @abstractmethod
    def disconnect(self, url: str, api_root: str, session_id: str) -> None:
        """Close the engine connection for ``session_id``."""
        pass

    @abstractmethod
    def consume(self, url: str, api_root: str, session_id: str, wait_timeout_ms: int) -> bytes:
        """Take the next binary output from the proxy, raising NoContentError if none arrives in time."""
        pass

    @abstractmethod
    def send(self, url: str, api_root: str, session_id: str, payload: str) -> None:
        """Deliver an encoded input payload to the proxy."""
        pass


@dataclass
class MockProxy:
    """State of one simulated proxy."""

    url: str
    reachable: bool = True
    failing_operations: Set[str] = field(default_factory=set)
    sessions: Set[str] = field(default_factory=set)
    outputs: Deque[bytes] = field(default_factory=deque)
    received: List[str] = field(default_factory=list)
    public_keys: List[Optional[str]] = field(default_factory=list)
    latency: float = 0.0


class MockProxyTransport(ProxyTransport):
    """
    In-memory ProxyTransport.

    Every call is recorded in ``calls`` as ``(operation, url)`` so tests can
    assert which proxies were actually contacted.
    """

    def __init__(self, urls: Optional[List[str]] = None) -> None:
        self._proxies: Dict[str, MockProxy] = {}
        self._lock = threading.Lock()
        self._output_ready = threading.Condition(self._lock)
        self.calls: List[Tuple[str, str]] = []
        for url in urls or []:
            self.add_proxy(url)

    def add_proxy(self, url: str) -> MockProxy:
        with self._lock:
            proxy = MockProxy(url=url)
            self._proxies[url] = proxy
            return proxy

    def proxy(self, url: str) -> MockProxy:
        return self._proxies[url]

    def push_output(self, url: str, data: bytes) -> None:
        """Queue engine output at a proxy, waking any waiting consumer."""
        with self._output_ready:
            self._proxies[url].outputs.append(data)
            self._output_ready.notify_all()

    def calls_for(self, operation: str) -> List[str]:
        with self._lock:
            return [url for op, url in self.calls if op == operation]

    def _enter(self, operation: str, url: str) -> MockProxy:
        with self._lock:
            self.calls.append((operation, url))
            proxy = self._proxies.get(url)
        if proxy is None or not proxy.reachable:
            raise TransportError(f"Unable to reach SPDZ proxy {url}", url=url)
        if proxy.latency:
            time.sleep(proxy.latency)
        if operation in proxy.failing_operations:
            raise TransportError(f"SPDZ proxy {url} rejected {operation}", url=url)
        return proxy

    def _require_session(self, proxy: MockProxy, session_id: str) -> None:
        if session_id not in proxy.sessions:
            raise TransportError(f"Unknown session {session_id} at {proxy.url}", url=proxy.url)

    def connect(
        self,
        url: str,
        api_root: str,
        session_id: Optional[str] = None,
        public_key: Optional[str] = None,
    ) -> str:
        proxy = self._enter("connect", url)
        generated = session_id or uuid.uuid4().hex
        with self._lock:
            proxy.sessions.add(generated)
            proxy.public_keys.append(public_key)
        return generated

    def check(self, url: str, api_root: str, session_id: str) -> None:
        proxy = self._enter("check", url)
        self._require_session(proxy, session_id)

    def disconnect(self, url: str, api_root: str, session_id: str) -> None:
        proxy = self._enter("disconnect", url)
        self._require_session(proxy, session_id)
        with self._lock:
            proxy.sessions.discard(session_id)

    def consume(self, url: str, api_root: str, session_id: str, wait_timeout_ms: int) -> bytes:
        proxy = self._enter("consume", url)
        self._require_session(proxy, session_id)
        with self._output_ready:
            if not proxy.outputs and wait_timeout_ms > 0:
                self._output_ready.wait_for(lambda: bool(proxy.outputs), timeout=wait_timeout_ms / 1000.0)
            if not proxy.outputs:
                raise NoContentError(f"No content available from SPDZ proxy {url}", url=url)
            return proxy.outputs.popleft()

    def send(self, url: str, api_root: str, session_id: str, payload: str) -> None:
        proxy = self._enter("send", url)
        self._require_session(proxy, session_id)
        with self._lock:
            proxy.received.append(payload)

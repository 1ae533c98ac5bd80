"""Coordination of sessions and requests across all SPDZ proxies."""

from .aggregate import ProxyAggregator, encode_inputs, poll_consume, verify_required_keys
from .sessions import SessionStore
from .status import ProxyOutcome, ProxyStatus, all_connected
from .transport import MockProxy, MockProxyTransport, ProxyTransport

__all__ = [
    "ProxyAggregator",
    "encode_inputs",
    "poll_consume",
    "verify_required_keys",
    "SessionStore",
    "ProxyOutcome",
    "ProxyStatus",
    "all_connected",
    "MockProxy",
    "MockProxyTransport",
    "ProxyTransport",
]

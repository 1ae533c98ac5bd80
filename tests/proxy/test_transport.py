"""Tests for the in-memory proxy transport."""

import pytest

from spdz_client.errors import NoContentError, TransportError
from spdz_client.proxy import MockProxyTransport


def test_connect_generates_distinct_session_ids() -> None:
    transport = MockProxyTransport(["http://a"])
    first = transport.connect("http://a", "/spdzapi")
    second = transport.connect("http://a", "/spdzapi")
    assert first and second and first != second
    assert transport.proxy("http://a").sessions == {first, second}


def test_unknown_proxy_is_transport_error() -> None:
    transport = MockProxyTransport()
    with pytest.raises(TransportError) as excinfo:
        transport.connect("http://nowhere", "/spdzapi")
    assert excinfo.value.url == "http://nowhere"
    assert transport.calls == [("connect", "http://nowhere")]


def test_unknown_session_rejected() -> None:
    transport = MockProxyTransport(["http://a"])
    with pytest.raises(TransportError):
        transport.check("http://a", "/spdzapi", "bogus")


def test_consume_in_fifo_order_then_no_content() -> None:
    transport = MockProxyTransport(["http://a"])
    session = transport.connect("http://a", "/spdzapi")
    transport.push_output("http://a", b"1")
    transport.push_output("http://a", b"2")
    assert transport.consume("http://a", "/spdzapi", session, 0) == b"1"
    assert transport.consume("http://a", "/spdzapi", session, 0) == b"2"
    with pytest.raises(NoContentError):
        transport.consume("http://a", "/spdzapi", session, 10)


def test_disconnect_ends_session() -> None:
    transport = MockProxyTransport(["http://a"])
    session = transport.connect("http://a", "/spdzapi")
    transport.disconnect("http://a", "/spdzapi", session)
    with pytest.raises(TransportError):
        transport.send("http://a", "/spdzapi", session, "[]")

"""Prometheus metrics for the proxy client."""

from __future__ import annotations

from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

from .logging import get_logger

logger = get_logger("prometheus_metrics")


class PrometheusMetrics:
    """Exposes per-proxy request metrics; usable as a metrics sink for ``ProxyAggregator``."""

    def __init__(self, client_id: str, registry: Optional[CollectorRegistry] = None) -> None:
        self.client_id = client_id
        self.registry = registry if registry is not None else CollectorRegistry()
        self._server_started = False

        self.requests = Counter(
            "spdz_proxy_requests_total",
            "Requests made to SPDZ proxies, by outcome",
            ["client_id", "operation", "proxy", "status"],
            registry=self.registry,
        )
        self.request_time = Histogram(
            "spdz_proxy_request_seconds",
            "Latency of a single proxy request",
            ["client_id", "operation"],
            buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
            registry=self.registry,
        )
        self.proxies_connected = Gauge(
            "spdz_proxies_connected",
            "Number of proxies connected after the last connect or check round",
            ["client_id"],
            registry=self.registry,
        )
        self.bytes_sent = Counter(
            "spdz_proxy_bytes_sent_total",
            "Payload bytes sent to proxies",
            ["client_id", "proxy"],
            registry=self.registry,
        )
        self.bytes_received = Counter(
            "spdz_proxy_bytes_received_total",
            "Payload bytes consumed from proxies",
            ["client_id", "proxy"],
            registry=self.registry,
        )
        self._counters: Dict[str, Counter] = {
            "proxy_requests": self.requests,
            "proxy_bytes_sent": self.bytes_sent,
            "proxy_bytes_received": self.bytes_received,
        }

    def start_server(self, port: int = 8000) -> None:
        """Start the Prometheus HTTP endpoint for this registry."""
        if self._server_started:
            return
        start_http_server(port, registry=self.registry)
        self._server_started = True
        logger.info("Prometheus metrics served on port %d", port)

    def emit_counter(self, name: str, value: float = 1.0, **labels: str) -> None:
        counter = self._counters.get(name)
        if counter is None:
            logger.debug("Ignoring unknown counter %s", name)
            return
        counter.labels(client_id=self.client_id, **labels).inc(value)

    def emit_gauge(self, name: str, value: float, **labels: str) -> None:
        if name != "proxies_connected":
            logger.debug("Ignoring unknown gauge %s", name)
            return
        self.proxies_connected.labels(client_id=self.client_id).set(value)

    def emit_timer(self, name: str, value: float, **labels: str) -> None:
        if name != "proxy_request_seconds":
            logger.debug("Ignoring unknown timer %s", name)
            return
        self.request_time.labels(client_id=self.client_id, operation=labels.get("operation", "")).observe(value)

    def sample(self, name: str, **labels: str) -> Optional[float]:
        """Read a sample value back from the registry."""
        return self.registry.get_sample_value(name, {"client_id": self.client_id, **labels})

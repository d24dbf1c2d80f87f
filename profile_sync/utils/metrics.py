"""
Metrics collection and export for Profile Sync.

Two backends: an in-memory collector for tests and CLI reporting, and a
Prometheus collector for long-running processes.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server


@dataclass
class MetricsConfig:
    """
    Metrics configuration.

    Attributes:
        enabled: Whether metrics collection is active
        type: Metrics backend type ("prometheus", "simple")
        port: HTTP port for metrics endpoint (Prometheus)
    """
    enabled: bool = False
    type: str = "simple"  # prometheus, simple
    port: int = 9090


class SimpleMetrics:
    """
    Simple in-memory metrics collector.

    Provides basic counters, histograms and gauges keyed by name and labels.
    """

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {}
        self._histograms: Dict[str, List[float]] = {}
        self._gauges: Dict[str, float] = {}
        self._start_time = time.time()

    def inc_counter(self, name: str, value: int = 1, labels: Optional[Dict[str, str]] = None) -> None:
        """Increment a counter."""
        key = self._make_key(name, labels)
        self._counters[key] = self._counters.get(key, 0) + value

    def observe_histogram(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Record a histogram observation."""
        self._histograms.setdefault(self._make_key(name, labels), []).append(value)

    def set_gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Set a gauge value."""
        self._gauges[self._make_key(name, labels)] = value

    def get_counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> int:
        return self._counters.get(self._make_key(name, labels), 0)

    def get_gauge(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        return self._gauges.get(self._make_key(name, labels), 0.0)

    def get_histogram_stats(self, name: str, labels: Optional[Dict[str, str]] = None) -> Dict[str, float]:
        """Get histogram statistics."""
        values = self._histograms.get(self._make_key(name, labels), [])
        if not values:
            return {"count": 0, "sum": 0, "min": 0, "max": 0, "avg": 0}
        return {
            "count": len(values),
            "sum": sum(values),
            "min": min(values),
            "max": max(values),
            "avg": sum(values) / len(values),
        }

    def get_all(self) -> Dict[str, Any]:
        """Get all metrics as a dictionary."""
        return {
            "counters": dict(self._counters),
            "histograms": {k: self.get_histogram_stats(k) for k in self._histograms},
            "gauges": dict(self._gauges),
            "uptime_seconds": time.time() - self._start_time,
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._counters.clear()
        self._histograms.clear()
        self._gauges.clear()
        self._start_time = time.time()

    @staticmethod
    def _make_key(name: str, labels: Optional[Dict[str, str]] = None) -> str:
        """Create a unique key for a metric with labels."""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


class PrometheusMetrics:
    """
    Prometheus metrics collector.

    Each instance owns its registry so several services (or tests) can
    coexist in one process.
    """

    def __init__(self, port: int = 9090, registry: Optional[CollectorRegistry] = None) -> None:
        self._port = port
        self._server_started = False
        self.registry = registry or CollectorRegistry()

        self._cache_requests = Counter(
            "profile_cache_requests_total",
            "Profile cache lookups",
            ["result"],
            registry=self.registry,
        )
        self._store_lookups = Counter(
            "profile_store_lookups_total",
            "Store lookup round-trips issued by the cache",
            ["kind"],
            registry=self.registry,
        )
        self._repairs = Counter(
            "profile_repairs_total",
            "Reference repair runs",
            ["status"],
            registry=self.registry,
        )
        self._repair_batches = Counter(
            "profile_repair_batches_total",
            "Atomic batches flushed by reference repair",
            registry=self.registry,
        )
        self._repair_duration = Histogram(
            "profile_repair_duration_seconds",
            "Reference repair duration in seconds",
            registry=self.registry,
        )
        self._cache_size = Gauge(
            "profile_cache_entries",
            "Entries currently held by the profile cache",
            registry=self.registry,
        )

    def start_server(self) -> None:
        """Start the Prometheus HTTP server."""
        if not self._server_started:
            start_http_server(self._port, registry=self.registry)
            self._server_started = True

    def record_cache(self, hit: bool, count: int = 1) -> None:
        self._cache_requests.labels(result="hit" if hit else "miss").inc(count)

    def record_lookup(self, kind: str) -> None:
        self._store_lookups.labels(kind=kind).inc()

    def record_repair(self, success: bool, duration_ms: int, batches: int) -> None:
        self._repairs.labels(status="success" if success else "error").inc()
        self._repair_batches.inc(batches)
        self._repair_duration.observe(duration_ms / 1000)

    def set_cache_size(self, size: int) -> None:
        self._cache_size.set(size)


class SyncMetrics:
    """
    Profile Sync metrics collector.

    Chooses the backend from configuration.
    """

    def __init__(self, config: Optional[MetricsConfig] = None) -> None:
        self._config = config or MetricsConfig()
        self._backend: Any
        if self._config.enabled and self._config.type == "prometheus":
            self._backend = PrometheusMetrics(port=self._config.port)
        else:
            self._backend = SimpleMetrics()

    @property
    def is_enabled(self) -> bool:
        return self._config.enabled

    @property
    def backend_type(self) -> str:
        if isinstance(self._backend, PrometheusMetrics):
            return "prometheus"
        return "simple"

    @property
    def backend(self) -> Any:
        return self._backend

    def start_server(self) -> None:
        """Start metrics HTTP server (Prometheus only)."""
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.start_server()

    def record_cache_hit(self, count: int = 1) -> None:
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.record_cache(True, count)
        else:
            self._backend.inc_counter("cache_requests", count, labels={"result": "hit"})

    def record_cache_miss(self, count: int = 1) -> None:
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.record_cache(False, count)
        else:
            self._backend.inc_counter("cache_requests", count, labels={"result": "miss"})

    def record_lookup(self, kind: str, size: int = 1) -> None:
        """Record a store lookup round-trip ("single" or "batch")."""
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.record_lookup(kind)
        else:
            self._backend.inc_counter("store_lookups", labels={"kind": kind})
            self._backend.observe_histogram("store_lookup_size", size, labels={"kind": kind})

    def record_repair(self, success: bool, duration_ms: int, batches: int = 0) -> None:
        """Record a finished reference repair."""
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.record_repair(success, duration_ms, batches)
        else:
            status = "success" if success else "error"
            self._backend.inc_counter("repairs", labels={"status": status})
            self._backend.inc_counter("repair_batches", batches)
            self._backend.observe_histogram("repair_duration_ms", duration_ms)

    def set_cache_size(self, size: int) -> None:
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.set_cache_size(size)
        else:
            self._backend.set_gauge("cache_size", size)

    def get_all(self) -> Dict[str, Any]:
        """Get all metrics (simple backend only)."""
        if isinstance(self._backend, SimpleMetrics):
            return self._backend.get_all()
        return {"note": "Use Prometheus endpoint for metrics"}

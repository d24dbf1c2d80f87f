"""Tests for profile_sync.utils.metrics module."""

from unittest.mock import patch

from prometheus_client import CollectorRegistry

from profile_sync.utils.metrics import (
    MetricsConfig,
    PrometheusMetrics,
    SimpleMetrics,
    SyncMetrics,
)


class TestMetricsConfig:
    """Tests for MetricsConfig dataclass."""

    def test_default_values(self):
        """Should have sensible defaults."""
        cfg = MetricsConfig()
        assert cfg.enabled is False
        assert cfg.type == "simple"
        assert cfg.port == 9090

    def test_custom_values(self):
        """Should accept custom values."""
        cfg = MetricsConfig(enabled=True, type="prometheus", port=8080)
        assert cfg.enabled is True
        assert cfg.type == "prometheus"
        assert cfg.port == 8080


class TestSimpleMetrics:
    """Tests for SimpleMetrics class."""

    def test_counter(self):
        """Should track counters correctly."""
        metrics = SimpleMetrics()
        metrics.inc_counter("lookups")
        metrics.inc_counter("lookups")
        metrics.inc_counter("lookups", 3)
        assert metrics.get_counter("lookups") == 5

    def test_counter_with_labels(self):
        """Should track counters with labels separately."""
        metrics = SimpleMetrics()
        metrics.inc_counter("lookups", labels={"kind": "batch"})
        metrics.inc_counter("lookups", labels={"kind": "single"})
        metrics.inc_counter("lookups", labels={"kind": "batch"})

        assert metrics.get_counter("lookups", labels={"kind": "batch"}) == 2
        assert metrics.get_counter("lookups", labels={"kind": "single"}) == 1

    def test_histogram(self):
        """Should track histogram observations."""
        metrics = SimpleMetrics()
        metrics.observe_histogram("duration", 100)
        metrics.observe_histogram("duration", 200)
        metrics.observe_histogram("duration", 150)

        stats = metrics.get_histogram_stats("duration")
        assert stats["count"] == 3
        assert stats["sum"] == 450
        assert stats["min"] == 100
        assert stats["max"] == 200
        assert stats["avg"] == 150

    def test_empty_histogram(self):
        stats = SimpleMetrics().get_histogram_stats("nothing")
        assert stats["count"] == 0

    def test_gauge(self):
        metrics = SimpleMetrics()
        metrics.set_gauge("size", 10)
        metrics.set_gauge("size", 4)
        assert metrics.get_gauge("size") == 4

    def test_get_all_and_reset(self):
        metrics = SimpleMetrics()
        metrics.inc_counter("a")
        metrics.observe_histogram("b", 1)
        metrics.set_gauge("c", 2)

        all_metrics = metrics.get_all()
        assert all_metrics["counters"] == {"a": 1}
        assert all_metrics["histograms"]["b"]["count"] == 1
        assert all_metrics["gauges"] == {"c": 2}
        assert all_metrics["uptime_seconds"] >= 0

        metrics.reset()
        assert metrics.get_all()["counters"] == {}


class TestSyncMetrics:
    """Tests for SyncMetrics facade."""

    def test_simple_backend_by_default(self):
        metrics = SyncMetrics()
        assert metrics.backend_type == "simple"
        assert metrics.is_enabled is False

    def test_prometheus_backend(self):
        metrics = SyncMetrics(MetricsConfig(enabled=True, type="prometheus"))
        assert metrics.backend_type == "prometheus"
        assert metrics.get_all() == {"note": "Use Prometheus endpoint for metrics"}

    def test_prometheus_disabled_falls_back(self):
        metrics = SyncMetrics(MetricsConfig(enabled=False, type="prometheus"))
        assert metrics.backend_type == "simple"

    def test_records_to_simple_backend(self):
        metrics = SyncMetrics()
        metrics.record_cache_hit(3)
        metrics.record_cache_miss()
        metrics.record_lookup("batch", 7)
        metrics.record_repair(True, 120, batches=2)
        metrics.set_cache_size(5)

        backend = metrics.backend
        assert backend.get_counter("cache_requests", labels={"result": "hit"}) == 3
        assert backend.get_counter("cache_requests", labels={"result": "miss"}) == 1
        assert backend.get_histogram_stats("store_lookup_size", labels={"kind": "batch"})["max"] == 7
        assert backend.get_counter("repairs", labels={"status": "success"}) == 1
        assert backend.get_counter("repair_batches") == 2
        assert backend.get_gauge("cache_size") == 5


class TestPrometheusMetrics:
    """Tests for PrometheusMetrics."""

    def test_instances_do_not_share_registry(self):
        """Two collectors in one process must not collide."""
        first = PrometheusMetrics()
        second = PrometheusMetrics()
        assert first.registry is not second.registry

    def test_records_samples(self):
        registry = CollectorRegistry()
        metrics = PrometheusMetrics(registry=registry)

        metrics.record_cache(True, 4)
        metrics.record_cache(False)
        metrics.record_lookup("batch")
        metrics.record_repair(False, 250, 1)
        metrics.set_cache_size(9)

        sample = registry.get_sample_value
        assert sample("profile_cache_requests_total", {"result": "hit"}) == 4
        assert sample("profile_cache_requests_total", {"result": "miss"}) == 1
        assert sample("profile_store_lookups_total", {"kind": "batch"}) == 1
        assert sample("profile_repairs_total", {"status": "error"}) == 1
        assert sample("profile_repair_batches_total") == 1
        assert sample("profile_repair_duration_seconds_sum") == 0.25
        assert sample("profile_cache_entries") == 9

    def test_start_server_once(self):
        """The HTTP endpoint is started once, on the instance's registry."""
        metrics = SyncMetrics(MetricsConfig(enabled=True, type="prometheus", port=9123))
        with patch("profile_sync.utils.metrics.start_http_server") as start:
            metrics.start_server()
            metrics.start_server()

        start.assert_called_once_with(9123, registry=metrics.backend.registry)

    def test_start_server_noop_for_simple_backend(self):
        with patch("profile_sync.utils.metrics.start_http_server") as start:
            SyncMetrics().start_server()
        start.assert_not_called()

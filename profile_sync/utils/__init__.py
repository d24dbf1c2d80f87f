"""Profile Sync utilities."""

from .logging import get_logger, setup_logging, setup_logging_from_dict
from .metrics import MetricsConfig, PrometheusMetrics, SimpleMetrics, SyncMetrics

__all__ = [
    "get_logger",
    "setup_logging",
    "setup_logging_from_dict",
    "MetricsConfig",
    "PrometheusMetrics",
    "SimpleMetrics",
    "SyncMetrics",
]

"""
Profile Sync configuration handling.

Provides YAML configuration loading and validation.
"""

from dataclasses import dataclass
from typing import Any, Dict

import yaml

DEFAULT_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


@dataclass
class SyncConfig:
    """
    Profile Sync configuration.

    Can be loaded from a YAML file or created programmatically.
    """
    # Cache
    cache_ttl: float = 300.0  # seconds
    cache_max_size: int = 1000

    # Store
    store_backend: str = "memory"  # memory, json
    store_path: str = ""
    lookup_batch_limit: int = 10
    write_batch_limit: int = 500

    # Logging
    log_level: str = "INFO"
    log_file: str = ""
    log_format: str = DEFAULT_LOG_FORMAT
    log_max_bytes: int = 10485760  # 10MB
    log_backup_count: int = 3

    # Metrics
    metrics_enabled: bool = False
    metrics_type: str = "simple"  # prometheus, simple
    metrics_port: int = 9090

    def __post_init__(self) -> None:
        if self.cache_ttl <= 0:
            raise ValueError(f"cache ttl must be positive, got {self.cache_ttl}")
        if self.cache_max_size < 1:
            raise ValueError(f"cache max_size must be >= 1, got {self.cache_max_size}")
        if self.lookup_batch_limit < 1:
            raise ValueError(f"lookup_batch_limit must be >= 1, got {self.lookup_batch_limit}")
        if self.write_batch_limit < 1:
            raise ValueError(f"write_batch_limit must be >= 1, got {self.write_batch_limit}")
        if self.store_backend not in ("memory", "json"):
            raise ValueError(f"Unknown store backend: {self.store_backend}")

    @classmethod
    def load(cls, path: str) -> "SyncConfig":
        """
        Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            SyncConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If config file is invalid YAML
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncConfig":
        """
        Create configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            SyncConfig instance
        """
        cache_cfg = data.get("cache", {})
        store_cfg = data.get("store", {})
        logging_cfg = data.get("logging", {})
        metrics_cfg = data.get("metrics", {})

        return cls(
            cache_ttl=cache_cfg.get("ttl", 300.0),
            cache_max_size=cache_cfg.get("max_size", 1000),
            store_backend=store_cfg.get("backend", "memory").lower(),
            store_path=store_cfg.get("path", ""),
            lookup_batch_limit=store_cfg.get("lookup_batch_limit", 10),
            write_batch_limit=store_cfg.get("write_batch_limit", 500),
            log_level=logging_cfg.get("level", "INFO"),
            log_file=logging_cfg.get("file", ""),
            log_format=logging_cfg.get("format", DEFAULT_LOG_FORMAT),
            log_max_bytes=logging_cfg.get("max_bytes", 10485760),
            log_backup_count=logging_cfg.get("backup_count", 3),
            metrics_enabled=metrics_cfg.get("enabled", False),
            metrics_type=metrics_cfg.get("type", "simple"),
            metrics_port=metrics_cfg.get("port", 9090),
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Returns:
            Configuration as dictionary
        """
        return {
            "cache": {
                "ttl": self.cache_ttl,
                "max_size": self.cache_max_size,
            },
            "store": {
                "backend": self.store_backend,
                "path": self.store_path,
                "lookup_batch_limit": self.lookup_batch_limit,
                "write_batch_limit": self.write_batch_limit,
            },
            "logging": {
                "level": self.log_level,
                "file": self.log_file,
                "format": self.log_format,
                "max_bytes": self.log_max_bytes,
                "backup_count": self.log_backup_count,
            },
            "metrics": {
                "enabled": self.metrics_enabled,
                "type": self.metrics_type,
                "port": self.metrics_port,
            },
        }

    def save(self, path: str) -> None:
        """
        Save configuration to a YAML file.

        Args:
            path: Path to save the configuration file
        """
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, allow_unicode=True)

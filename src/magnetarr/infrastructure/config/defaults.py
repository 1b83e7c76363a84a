"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "magnetarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 15.0,
        "follow_redirects": True,
        "user_agent": "Magnetarr/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "backend": "diskcache",
        "dir": "./.cache/magnetarr",
        "max_concurrent": 10,
    },
    "indexers": {
        "timeout_seconds": 20.0,
        "ygg_enabled": True,
    },
    "classifier": {
        "gate_series_packs": True,
    },
    "quota": {
        "enabled": True,
        "max_tracked_magnets": 500,
        "delete_count": 100,
        "debounce_seconds": 60.0,
    },
}

"""Дефолтная схема конфигурации config.json."""

from __future__ import annotations

from typing import Any, Dict

# DEFAULT_CONFIG служит шаблоном для начального config.json
DEFAULT_CONFIG: Dict[str, Any] = {
    "version": "1.0.0",
    "schema_version": 1,
    "docker": {
        "base_url": "",
        "timeout_sec": 10,
    },
    "refresh": {
        "queue_capacity": 60,
        "reconcile_interval_sec": 30,
    },
    "display": {
        "sort_field": "state",
        "sort_reversed": False,
        "filter_text": "",
        "show_all": True,
    },
    "metrics": {
        "interval_ms": 1000,
        "history_size": 60,
    },
    "logging": {
        "enabled": True,
        "level": "INFO",
        "max_file_size_mb": 10,
        "max_archived_files": 5,
    },
}

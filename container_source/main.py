"""Точка входа: запускает синхронизацию реестра контейнеров без UI."""

from __future__ import annotations

import logging
import os
import signal
import sys
import threading
from collections import Counter
from pathlib import Path
from typing import Any

from container_source import __version__
from container_source.core.source import DockerContainerSource
from container_source.docker_api.exceptions import SourceStartupError
from container_source.settings.exceptions import SettingsError
from container_source.settings.registry import SettingsRegistry
from container_source.utils.logger import configure_logging, get_logger

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STARTUP_FAILED = 1
EXIT_EVENTS_LOST = 2

STATUS_INTERVAL_SEC = 10.0


def resolve_base_dir() -> Path:
    """Рабочая директория: $CONTAINER_SOURCE_HOME или домашний каталог."""

    home_dir = Path(os.environ.get("CONTAINER_SOURCE_HOME", Path.home()))
    return home_dir / ".container-source"


def initialize_settings(config_path: Path) -> SettingsRegistry:
    """Получает singleton реестр настроек и загружает config.json."""

    registry = SettingsRegistry(config_path=config_path)
    registry.load_from_disk()
    return registry


def setup_logging_from_settings(base_dir: Path, settings: Any) -> None:
    """Настраивает логирование в соответствии с группой logging."""

    logging_settings = settings.get_group("logging")
    if not logging_settings.get("enabled"):
        logging.disable(logging.CRITICAL)
        return

    logging.disable(logging.NOTSET)
    configure_logging(
        log_dir=base_dir / "logs",
        level_name=logging_settings.get("level", "INFO"),
        max_bytes=logging_settings.get("max_file_size_mb", 10) * 1024 * 1024,
        backup_count=logging_settings.get("max_archived_files", 5),
    )


def describe(source: DockerContainerSource) -> str:
    """Короткая сводка для периодической строки статуса."""

    containers = source.all()
    states = Counter(container.state or "unknown" for container in containers)
    summary = ", ".join(f"{state}={count}" for state, count in sorted(states.items()))
    return f"{len(containers)} containers" + (f" ({summary})" if summary else "")


def run(
    source: DockerContainerSource,
    stop_event: threading.Event,
    *,
    status_interval: float = STATUS_INTERVAL_SEC,
    poll_interval: float = 0.5,
) -> int:
    """Держит источник запущенным до сигнала остановки или потери событий."""

    status_logger = get_logger("container_source.status")
    elapsed = 0.0
    while not stop_event.wait(poll_interval):
        if not source.healthy:
            return EXIT_EVENTS_LOST
        elapsed += poll_interval
        if elapsed >= status_interval:
            elapsed = 0.0
            status_logger.info(describe(source))
    return EXIT_OK


def main() -> int:
    """Основная точка входа: готовит окружение и запускает синхронизацию."""

    base_dir = resolve_base_dir()
    configure_logging(base_dir / "logs")

    try:
        settings = initialize_settings(base_dir / "config.json")
    except SettingsError:
        return EXIT_STARTUP_FAILED
    setup_logging_from_settings(base_dir, settings)

    LOGGER.info("Starting container source %s", __version__)
    try:
        source = DockerContainerSource.create(settings)
        source.start()
    except SourceStartupError as exc:
        LOGGER.critical("Cannot start container source: %s", exc)
        return EXIT_STARTUP_FAILED

    stop_event = threading.Event()

    def _request_stop(signum: int, _frame: Any) -> None:
        LOGGER.info("Received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)
    try:
        return run(source, stop_event)
    finally:
        source.stop()


if __name__ == "__main__":
    sys.exit(main())

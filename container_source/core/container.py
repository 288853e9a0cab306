"""Сущность контейнера, отражающая состояние объекта в Docker."""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Mapping, Optional

from container_source.metrics.collector import ContainerMetrics, MetricsCollector

LOGGER = logging.getLogger(__name__)

# Ключи метаданных, которые заполняет обновление из docker inspect
META_KEYS = ("name", "image", "ports", "created")

RUNNING_STATE = "running"


class Container:
    """Изменяемая запись о контейнере.

    Поля меняет только один писатель (RefreshWorker, а при старте Bootstrap),
    читать их может любой поток. Метаданные хранятся как неизменяемый снимок и
    заменяются целиком, поэтому читатель никогда не видит словарь в середине
    изменения.
    """

    __slots__ = ("_id", "_meta", "_state", "_collector", "_released", "_lifecycle_lock")

    def __init__(self, container_id: str, collector: MetricsCollector) -> None:
        self._id = container_id
        self._meta: Mapping[str, str] = MappingProxyType({})
        self._state = ""
        self._collector = collector
        self._released = False
        # согласует запуск сборщика с удалением из реестра
        self._lifecycle_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Container(id={self._id[:12]!r}, name={self.name!r}, state={self._state!r})"

    @property
    def id(self) -> str:
        return self._id

    @property
    def meta(self) -> Mapping[str, str]:
        """Текущий снимок метаданных (только для чтения)."""

        return self._meta

    @property
    def state(self) -> str:
        return self._state

    @property
    def released(self) -> bool:
        return self._released

    @property
    def collector(self) -> MetricsCollector:
        return self._collector

    @property
    def name(self) -> str:
        return self._meta.get("name", "")

    def get_meta(self, key: str, default: str = "") -> str:
        return self._meta.get(key, default)

    def set_meta(self, key: str, value: str) -> None:
        self.update_meta({key: value})

    def update_meta(self, values: Mapping[str, str]) -> None:
        """Заменяет метаданные новым снимком с применёнными значениями."""

        merged = dict(self._meta)
        merged.update(values)
        self._meta = MappingProxyType(merged)

    def set_state(self, state: str) -> None:
        """Обновляет состояние и включает сбор метрик только для running."""

        self._state = state
        with self._lifecycle_lock:
            if self._released:
                return
            if state == RUNNING_STATE and not self._collector.running:
                self._collector.start()
            elif state != RUNNING_STATE and self._collector.running:
                self._collector.stop()

    def latest_metrics(self) -> Optional[ContainerMetrics]:
        return self._collector.latest()

    def release(self) -> None:
        """Останавливает сборщик метрик при удалении контейнера из реестра."""

        with self._lifecycle_lock:
            self._released = True
            if self._collector.running:
                LOGGER.debug("Stopping metrics for removed container %s", self._id)
            self._collector.stop()

"""Сборщики метрик контейнера на основе docker stats."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional, Protocol, runtime_checkable

from docker.errors import NotFound

from container_source.docker_api.client import CLIENT_ERRORS, DockerClientWrapper

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ContainerMetrics:
    """Один замер ресурсов контейнера."""

    timestamp: float
    cpu_percent: float = 0.0
    memory_usage: int = 0
    memory_limit: int = 0
    memory_percent: float = 0.0
    net_rx: int = 0
    net_tx: int = 0
    io_read: int = 0
    io_write: int = 0
    pids: int = 0


@runtime_checkable
class MetricsCollector(Protocol):
    """Контракт сборщика, привязанного к одному контейнеру."""

    @property
    def running(self) -> bool:
        """Идёт ли сейчас сбор."""

    def start(self) -> None:
        """Запускает сбор; повторный вызов ничего не делает."""

    def stop(self) -> None:
        """Останавливает сбор; повторный вызов ничего не делает."""

    def latest(self) -> Optional[ContainerMetrics]:
        """Последний замер или None."""

    def samples(self) -> List[ContainerMetrics]:
        """Хронологическая копия накопленных замеров."""


CollectorFactory = Callable[[str], MetricsCollector]


class DockerStatsCollector:
    """Периодически опрашивает docker stats в отдельном daemon-потоке."""

    def __init__(
        self,
        client: DockerClientWrapper,
        container_id: str,
        *,
        interval_sec: float = 1.0,
        history_size: int = 60,
    ) -> None:
        self.container_id = container_id
        self._client = client
        self._interval = interval_sec
        self._history: Deque[ContainerMetrics] = deque(maxlen=history_size)
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None and not self._stop_event.is_set()

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and not self._stop_event.is_set():
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name=f"metrics-{self.container_id[:12]}",
                daemon=True,
            )
            self._thread.start()
        LOGGER.debug("Metrics collector started for %s", self.container_id)

    def stop(self) -> None:
        with self._lock:
            if self._thread is None:
                return
            self._stop_event.set()
            self._thread = None
        LOGGER.debug("Metrics collector stopped for %s", self.container_id)

    def latest(self) -> Optional[ContainerMetrics]:
        with self._lock:
            return self._history[-1] if self._history else None

    def samples(self) -> List[ContainerMetrics]:
        with self._lock:
            return list(self._history)

    def sample_once(self) -> Optional[ContainerMetrics]:
        """Выполняет один замер; возвращает None, если контейнер исчез."""

        raw = self._client.get_raw_client()
        try:
            stats = raw.api.stats(self.container_id, stream=False)
        except NotFound:
            LOGGER.debug("Container %s vanished, stopping metrics", self.container_id)
            self.stop()
            return None
        except CLIENT_ERRORS as exc:
            LOGGER.debug("Cannot read stats for %s: %s", self.container_id, exc)
            return None
        metrics = parse_stats(stats)
        with self._lock:
            self._history.append(metrics)
        return metrics

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            self.sample_once()
            stop_event.wait(self._interval)


def parse_stats(stats: Dict[str, Any], *, now: Optional[float] = None) -> ContainerMetrics:
    """Переводит ответ docker stats в ContainerMetrics."""

    memory_usage, memory_limit, memory_percent = _calculate_memory(stats)
    net_rx, net_tx = _calculate_network_io(stats)
    io_read, io_write = _calculate_disk_io(stats)
    return ContainerMetrics(
        timestamp=time.time() if now is None else now,
        cpu_percent=_calculate_cpu_percent(stats),
        memory_usage=memory_usage,
        memory_limit=memory_limit,
        memory_percent=memory_percent,
        net_rx=net_rx,
        net_tx=net_tx,
        io_read=io_read,
        io_write=io_write,
        pids=_safe_int((stats.get("pids_stats") or {}).get("current")),
    )


def _calculate_cpu_percent(stats: Dict[str, Any]) -> float:
    cpu_stats = stats.get("cpu_stats") or {}
    precpu = stats.get("precpu_stats") or {}
    cpu_delta = (cpu_stats.get("cpu_usage", {}).get("total_usage", 0)) - (
        precpu.get("cpu_usage", {}).get("total_usage", 0)
    )
    system_delta = cpu_stats.get("system_cpu_usage", 0) - precpu.get("system_cpu_usage", 0)
    online_cpus = (
        cpu_stats.get("online_cpus")
        or len(cpu_stats.get("cpu_usage", {}).get("percpu_usage") or [])
        or 1
    )
    if cpu_delta > 0 and system_delta > 0:
        return round((cpu_delta / system_delta) * online_cpus * 100.0, 2)
    return 0.0


def _calculate_memory(stats: Dict[str, Any]) -> tuple[int, int, float]:
    memory_stats = stats.get("memory_stats") or {}
    usage = _safe_int(memory_stats.get("usage"))
    limit = _safe_int(memory_stats.get("limit"))
    percent = round(usage / limit * 100, 2) if limit else 0.0
    return usage, limit, percent


def _calculate_network_io(stats: Dict[str, Any]) -> tuple[int, int]:
    networks = stats.get("networks") or {}
    rx = sum(interface.get("rx_bytes", 0) for interface in networks.values())
    tx = sum(interface.get("tx_bytes", 0) for interface in networks.values())
    return rx, tx


def _calculate_disk_io(stats: Dict[str, Any]) -> tuple[int, int]:
    blkio = (stats.get("blkio_stats") or {}).get("io_service_bytes_recursive") or []
    read = 0
    write = 0
    for entry in blkio:
        op = str(entry.get("op", "")).lower()
        if op == "read":
            read += entry.get("value", 0)
        elif op == "write":
            write += entry.get("value", 0)
    return read, write


def _safe_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0

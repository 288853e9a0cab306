"""Источник контейнеров: связывает реестр, очередь, воркер и слушатель событий."""

from __future__ import annotations

import logging
import threading
from typing import Any, List, Optional

from container_source.core.bootstrap import refresh_all
from container_source.core.container import Container
from container_source.core.listener import EventListener
from container_source.core.reconciler import Reconciler
from container_source.core.refresh_queue import RefreshQueue
from container_source.core.registry import ContainerRegistry
from container_source.core.sorting import get_sort_key, make_filter
from container_source.core.worker import RefreshWorker
from container_source.docker_api.client import DockerClientWrapper
from container_source.docker_api.events import EventStream, subscribe_events
from container_source.docker_api.exceptions import (
    DockerAPIError,
    EventStreamClosedError,
    SourceStartupError,
)
from container_source.metrics.collector import CollectorFactory, DockerStatsCollector

LOGGER = logging.getLogger(__name__)


class DockerContainerSource:
    """Живой реестр контейнеров Docker для панели мониторинга.

    Порядок запуска: воркер, подписка на события, первичное сканирование,
    слушатель событий, периодическая сверка. События, пришедшие во время
    сканирования, буферизуются в потоке и обрабатываются после него.
    """

    def __init__(
        self,
        settings: Any,
        client: DockerClientWrapper,
        *,
        collector_factory: Optional[CollectorFactory] = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self.registry = ContainerRegistry(collector_factory or self._default_collector_factory)
        self.queue = RefreshQueue(int(settings.get_value("refresh", "queue_capacity", default=60)))
        self._worker = RefreshWorker(self.registry, client, self.queue)
        self._reconciler = Reconciler(
            self.registry,
            client,
            self.queue,
            float(settings.get_value("refresh", "reconcile_interval_sec", default=30)),
        )
        self._listener: Optional[EventListener] = None
        self._stream: Optional[EventStream] = None
        self._failure: Optional[EventStreamClosedError] = None
        self._failed = threading.Event()
        self._started = False

    @classmethod
    def create(
        cls,
        settings: Any,
        *,
        client: Optional[DockerClientWrapper] = None,
        collector_factory: Optional[CollectorFactory] = None,
    ) -> "DockerContainerSource":
        """Создаёт источник; без клиента Docker продолжать нельзя."""

        if client is None:
            try:
                client = DockerClientWrapper(
                    settings.get_value("docker", "base_url", default=""),
                    timeout=int(settings.get_value("docker", "timeout_sec", default=10)),
                )
            except DockerAPIError as exc:
                raise SourceStartupError("client", exc.message) from exc
        if not client.ping():
            client.close()
            raise SourceStartupError("client", "Docker daemon is not reachable")
        return cls(settings, client, collector_factory=collector_factory)

    # ----------------------------------------------------------------- lifecycle
    def start(self) -> None:
        """Запускает синхронизацию; при фатальной ошибке всё запущенное останавливается."""

        if self._started:
            return
        self._worker.start()
        try:
            self._stream = subscribe_events(self._client)
        except DockerAPIError as exc:
            self._abort()
            raise SourceStartupError("events", exc.message) from exc
        try:
            refresh_all(self.registry, self._client, self.queue)
        except DockerAPIError as exc:
            self._abort()
            raise SourceStartupError("initial scan", exc.message) from exc

        self._listener = EventListener(
            self.registry,
            self.queue,
            self._stream,
            on_failure=self._handle_stream_failure,
        )
        self._listener.start()
        self._reconciler.start()
        self._started = True
        LOGGER.info("Container source started with %d containers", len(self.registry))

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Останавливает слушатель и сверку, даёт воркеру дочитать очередь."""

        self._reconciler.stop()
        if self._listener is not None:
            self._listener.stop()
        elif self._stream is not None:
            self._stream.close()
        self.queue.close()
        self._worker.join(timeout)
        if self._worker.alive:
            LOGGER.warning("Refresh worker is still busy, discarding pending refreshes")
            self._worker.stop()
        if self._listener is not None:
            self._listener.join(timeout)
        self._reconciler.join(timeout)
        self.registry.close()
        self._client.close()
        self._started = False
        LOGGER.info("Container source stopped")

    def _abort(self) -> None:
        if self._stream is not None:
            self._stream.close()
        self.queue.close()
        self._worker.join(1.0)
        self._worker.stop()
        self.registry.close()
        self._client.close()

    def _handle_stream_failure(self, failure: EventStreamClosedError) -> None:
        LOGGER.critical("Container registry is no longer tracking docker events: %s", failure)
        self._failure = failure
        self._failed.set()

    # ---------------------------------------------------------------------- read
    @property
    def healthy(self) -> bool:
        return not self._failed.is_set()

    @property
    def failure(self) -> Optional[EventStreamClosedError]:
        return self._failure

    def all(self) -> List[Container]:
        """Снимок контейнеров, упорядоченный и отфильтрованный по группе display."""

        sort_field = self._settings.get_value("display", "sort_field", default="state")
        reverse = bool(self._settings.get_value("display", "sort_reversed", default=False))
        filter_text = self._settings.get_value("display", "filter_text", default="")
        show_all = self._settings.get_value("display", "show_all", default=True)
        return self.registry.snapshot(
            get_sort_key(sort_field),
            make_filter(filter_text or "", bool(show_all)),
            reverse=reverse,
        )

    def get(self, container_id: str) -> Optional[Container]:
        return self.registry.get(container_id)

    # ------------------------------------------------------------------ helpers
    def _default_collector_factory(self, container_id: str) -> DockerStatsCollector:
        interval_ms = int(self._settings.get_value("metrics", "interval_ms", default=1000))
        history = int(self._settings.get_value("metrics", "history_size", default=60))
        return DockerStatsCollector(
            self._client,
            container_id,
            interval_sec=interval_ms / 1000,
            history_size=history,
        )

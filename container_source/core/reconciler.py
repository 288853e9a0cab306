"""Периодическая сверка реестра с полным списком контейнеров."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from container_source.core.refresh_queue import QueueClosedError, RefreshQueue
from container_source.core.registry import ContainerRegistry
from container_source.docker_api import containers
from container_source.docker_api.client import DockerClientWrapper
from container_source.docker_api.exceptions import DockerAPIError

LOGGER = logging.getLogger(__name__)


class Reconciler:
    """Раз в ``interval_sec`` ставит все контейнеры на обновление и удаляет пропавшие.

    Страхует от обновлений, потерянных из-за временных ошибок inspect, и от
    пропущенных событий destroy.
    """

    def __init__(
        self,
        registry: ContainerRegistry,
        client: DockerClientWrapper,
        queue: RefreshQueue,
        interval_sec: float,
    ) -> None:
        self._registry = registry
        self._client = client
        self._queue = queue
        self._interval = interval_sec
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def enabled(self) -> bool:
        return self._interval > 0

    def start(self) -> None:
        if not self.enabled or self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="reconciler", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def sweep(self) -> bool:
        """Один проход сверки; False, если список получить не удалось."""

        known = set(self._registry.ids())
        try:
            summaries = containers.list_containers(self._client, include_stopped=True)
        except DockerAPIError as exc:
            LOGGER.error("Reconciliation listing failed: %s", exc)
            return False

        listed = {summary.id for summary in summaries}
        # контейнеры, зарегистрированные после снятия списка, не трогаем
        for container_id in known - listed:
            self._registry.delete(container_id)
        for summary in summaries:
            if self._stop_event.is_set():
                break
            self._queue.enqueue(summary.id)
        LOGGER.debug("Reconciliation queued %d containers", len(listed))
        return True

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self.sweep()
            except QueueClosedError:
                return

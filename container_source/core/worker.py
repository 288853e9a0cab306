"""Единственный потребитель очереди обновления."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from container_source.core.container import Container
from container_source.core.refresh_queue import RefreshQueue
from container_source.core.registry import ContainerRegistry
from container_source.docker_api import containers
from container_source.docker_api.client import DockerClientWrapper
from container_source.docker_api.exceptions import ContainerNotFoundError, DockerAPIError

LOGGER = logging.getLogger(__name__)


class RefreshWorker:
    """Читает идентификаторы из очереди и перечитывает контейнеры из Docker.

    Это единственный поток, который меняет поля контейнеров после старта.
    """

    def __init__(
        self,
        registry: ContainerRegistry,
        client: DockerClientWrapper,
        queue: RefreshQueue,
    ) -> None:
        self._registry = registry
        self._client = client
        self._queue = queue
        self._thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.alive:
            return
        self._thread = threading.Thread(target=self.run, name="refresh-worker", daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def stop(self) -> None:
        """Прекращает выборку после текущего обновления; остаток очереди отбрасывается."""

        self._stopping.set()

    def run(self) -> None:
        """Цикл до закрытия очереди; оставшиеся в ней идентификаторы дочитываются."""

        LOGGER.info("Refresh worker started")
        while not self._stopping.is_set():
            container_id = self._queue.dequeue()
            if container_id is None or self._stopping.is_set():
                break
            try:
                self.refresh(self._registry.get_or_create(container_id))
            except Exception:  # некорректный ответ inspect, сбой запуска сборщика
                LOGGER.exception("Unexpected error while refreshing container %s", container_id)
        LOGGER.info("Refresh worker stopped")

    def refresh(self, container: Container) -> None:
        """Перечитывает контейнер; исчезнувший удаляется, при сбое остаётся прежним."""

        try:
            details = containers.inspect_container(self._client, container.id)
        except ContainerNotFoundError:
            self._registry.delete(container.id)
            return
        except DockerAPIError as exc:
            LOGGER.error("Cannot inspect container %s: %s", container.id, exc)
            return

        container.update_meta(
            {
                "name": containers.short_name(details.name),
                "image": details.image,
                "ports": containers.format_ports(details.ports),
                "created": containers.format_created(details.created),
            }
        )
        container.set_state(details.state)
        LOGGER.debug("Refreshed container %s (%s)", container.id, details.state)

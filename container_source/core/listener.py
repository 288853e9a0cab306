"""Слушатель событий Docker: переводит события в обновления реестра."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from container_source.core.refresh_queue import QueueClosedError, RefreshQueue
from container_source.core.registry import ContainerRegistry
from container_source.docker_api.events import EventStream
from container_source.docker_api.exceptions import EventStreamClosedError
from container_source.docker_api.models import RuntimeEvent

LOGGER = logging.getLogger(__name__)

REFRESH_ACTIONS = frozenset({"start", "die", "pause", "unpause"})
DESTROY_ACTION = "destroy"

FailureCallback = Callable[[EventStreamClosedError], None]


class EventListener:
    """Читает поток событий в отдельном потоке.

    ``start``/``die``/``pause``/``unpause`` ставят контейнер в очередь обновления
    (с ожиданием при заполненной очереди), ``destroy`` удаляет его из реестра
    напрямую. Неожиданное завершение потока передаётся в ``on_failure``.
    """

    def __init__(
        self,
        registry: ContainerRegistry,
        queue: RefreshQueue,
        stream: EventStream,
        *,
        on_failure: Optional[FailureCallback] = None,
    ) -> None:
        self._registry = registry
        self._queue = queue
        self._stream = stream
        self._on_failure = on_failure
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.failure: Optional[EventStreamClosedError] = None

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.alive:
            return
        self._thread = threading.Thread(target=self.run, name="event-listener", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopping.set()
        self._stream.close()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def dispatch(self, event: RuntimeEvent) -> None:
        if event.type != "container" or not event.container_id:
            return
        if event.action in REFRESH_ACTIONS:
            LOGGER.debug("Handling docker event: action=%s id=%s", event.action, event.container_id)
            self._queue.enqueue(event.container_id)
        elif event.action == DESTROY_ACTION:
            LOGGER.debug("Handling docker event: action=%s id=%s", event.action, event.container_id)
            self._registry.delete(event.container_id)

    def run(self) -> None:
        LOGGER.info("Docker event listener starting")
        reason = "stream ended"
        try:
            for event in self._stream:
                self.dispatch(event)
        except QueueClosedError:
            if self._stopping.is_set():
                return
            reason = "refresh queue closed"
        except Exception as exc:  # обрыв соединения приходит из urllib3/requests/socket
            if self._stopping.is_set():
                return
            LOGGER.debug("Docker event stream raised", exc_info=True)
            reason = str(exc) or type(exc).__name__

        if self._stopping.is_set():
            LOGGER.info("Docker event listener stopped")
            return
        self.failure = EventStreamClosedError(reason)
        if self._on_failure is not None:
            self._on_failure(self.failure)

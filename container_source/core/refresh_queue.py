"""Ограниченная FIFO-очередь идентификаторов, ожидающих обновления."""

from __future__ import annotations

import logging
import threading
from queue import Empty, Full, Queue
from typing import Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_CAPACITY = 60


class QueueClosedError(RuntimeError):
    """Очередь закрыта и новые идентификаторы не принимает."""


class RefreshQueue:
    """Очередь с обратным давлением: заполненная очередь блокирует производителя.

    После ``close()`` производители получают QueueClosedError, а потребитель
    дочитывает оставшиеся элементы и затем получает None.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, *, poll_interval: float = 0.5) -> None:
        if capacity < 1:
            raise ValueError("Refresh queue capacity must be positive")
        self.capacity = capacity
        self._queue: "Queue[str]" = Queue(maxsize=capacity)
        self._closed = threading.Event()
        self._poll_interval = poll_interval

    def __len__(self) -> int:
        return self._queue.qsize()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def enqueue(self, container_id: str) -> None:
        """Ставит идентификатор в очередь, ожидая свободного места."""

        while True:
            if self._closed.is_set():
                raise QueueClosedError(f"Refresh queue closed, dropping {container_id}")
            try:
                self._queue.put(container_id, timeout=self._poll_interval)
                return
            except Full:
                LOGGER.debug("Refresh queue full, waiting to enqueue %s", container_id)

    def dequeue(self, timeout: Optional[float] = None) -> Optional[str]:
        """Возвращает следующий идентификатор.

        None означает, что очередь закрыта и пуста, либо истёк ``timeout``.
        """

        waited = 0.0
        while True:
            try:
                return self._queue.get(timeout=self._poll_interval)
            except Empty:
                if self._closed.is_set():
                    return None
                waited += self._poll_interval
                if timeout is not None and waited >= timeout:
                    return None

    def close(self) -> None:
        self._closed.set()

"""Потокобезопасный реестр контейнеров."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from container_source.core.container import Container
from container_source.core.sorting import ContainerFilter, SortKey
from container_source.metrics.collector import CollectorFactory

LOGGER = logging.getLogger(__name__)


class ContainerRegistry:
    """Отображение идентификатора в Container с семантикой get-or-create.

    Блокировка защищает только структуру словаря и никогда не удерживается
    дольше одной операции над ним. Поля отдельных контейнеров она не охраняет.
    """

    def __init__(self, collector_factory: CollectorFactory) -> None:
        self._collector_factory = collector_factory
        self._containers: Dict[str, Container] = {}
        self._closed = False
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._containers)

    def __contains__(self, container_id: object) -> bool:
        with self._lock:
            return container_id in self._containers

    def get_or_create(self, container_id: str) -> Container:
        """Возвращает контейнер, создавая его (и сборщик метрик) ровно один раз."""

        with self._lock:
            container = self._containers.get(container_id)
            if container is not None:
                return container
            # фабрика только конструирует сборщик, сбор стартует позже из set_state
            container = Container(container_id, self._collector_factory(container_id))
            registered = not self._closed
            if registered:
                self._containers[container_id] = container
        if not registered:
            # реестр закрыт: запоздавший вызов получает уже освобождённый контейнер
            container.release()
            LOGGER.debug("Registry closed, ignoring container %s", container_id)
            return container
        LOGGER.debug("Registered container %s", container_id)
        return container

    def get(self, container_id: str) -> Optional[Container]:
        with self._lock:
            return self._containers.get(container_id)

    def delete(self, container_id: str) -> bool:
        """Удаляет контейнер; отсутствие записи ошибкой не считается."""

        with self._lock:
            container = self._containers.pop(container_id, None)
        if container is None:
            return False
        container.release()
        LOGGER.info("Removed dead container: %s", container_id)
        return True

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._containers)

    def snapshot(
        self,
        sort_key: Optional[SortKey] = None,
        predicate: Optional[ContainerFilter] = None,
        *,
        reverse: bool = False,
    ) -> List[Container]:
        """Возвращает отсортированный и отфильтрованный список на момент вызова.

        Под блокировкой копируются только ссылки; сортировка и фильтр выполняются
        уже без неё.
        """

        with self._lock:
            containers = list(self._containers.values())
        containers.sort(key=sort_key or (lambda item: item.id), reverse=reverse)
        if predicate is not None:
            containers = [container for container in containers if predicate(container)]
        return containers

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Освобождает все контейнеры; новые после этого не регистрируются."""

        with self._lock:
            self._closed = True
            containers = list(self._containers.values())
            self._containers.clear()
        for container in containers:
            container.release()

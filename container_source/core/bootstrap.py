"""Первичное заполнение реестра при старте."""

from __future__ import annotations

import logging

from container_source.core.refresh_queue import RefreshQueue
from container_source.core.registry import ContainerRegistry
from container_source.docker_api import containers
from container_source.docker_api.client import DockerClientWrapper

LOGGER = logging.getLogger(__name__)


def refresh_all(
    registry: ContainerRegistry,
    client: DockerClientWrapper,
    queue: RefreshQueue,
) -> int:
    """Регистрирует все контейнеры, включая остановленные, и ставит их на полное обновление.

    Имя и состояние берутся сразу из ответа docker ps, чтобы панели было что
    показать до завершения inspect. Ошибка листинга (DockerAPIError) не
    перехватывается: без неё реестр остался бы наполовину заполненным.
    """

    summaries = containers.list_containers(client, include_stopped=True)
    for summary in summaries:
        container = registry.get_or_create(summary.id)
        container.set_meta("name", containers.short_name(summary.primary_name))
        container.set_state(summary.state)
        queue.enqueue(container.id)
    LOGGER.info("Initial scan registered %d containers", len(summaries))
    return len(summaries)

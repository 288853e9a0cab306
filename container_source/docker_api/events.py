"""Подписка на поток событий Docker."""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterator

from container_source.docker_api.client import CLIENT_ERRORS, DockerClientWrapper
from container_source.docker_api.exceptions import DockerAPIError
from container_source.docker_api.models import RuntimeEvent

LOGGER = logging.getLogger(__name__)


class EventStream:
    """Итератор событий контейнеров поверх CancellableStream из docker-py."""

    def __init__(self, raw_stream: Any) -> None:
        self._raw_stream = raw_stream
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def __iter__(self) -> Iterator[RuntimeEvent]:
        for payload in self._raw_stream:
            if not isinstance(payload, dict):
                LOGGER.debug("Skipping undecodable docker event: %r", payload)
                continue
            yield RuntimeEvent.from_payload(payload)

    def close(self) -> None:
        """Прерывает HTTP-поток, разблокируя поток, читающий события."""

        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._raw_stream.close()
        except (*CLIENT_ERRORS, OSError) as exc:
            LOGGER.debug("Error while closing docker event stream: %s", exc)


def subscribe_events(client: DockerClientWrapper) -> EventStream:
    """Открывает поток событий, отфильтрованный по типу container."""

    raw = client.get_raw_client()
    try:
        raw_stream = raw.events(decode=True, filters={"type": "container"})
    except CLIENT_ERRORS as exc:
        raise DockerAPIError(str(exc), context={"operation": "events"}) from exc
    LOGGER.info("Subscribed to docker container events")
    return EventStream(raw_stream)

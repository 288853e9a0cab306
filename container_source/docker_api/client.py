"""Обёртка над docker-py с безопасной инициализацией."""

from __future__ import annotations

import logging
from typing import Any

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException

from container_source.docker_api.exceptions import DockerAPIError
from container_source.utils.helpers import normalize_socket_path

LOGGER = logging.getLogger(__name__)

# Ошибки, которые docker-py пропускает наружу из транспорта
CLIENT_ERRORS = (DockerException, RequestException)


class DockerClientWrapper:
    """Управляет созданием и использованием docker API client."""

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: int = 10,
        raw_client: Any | None = None,
    ) -> None:
        self.base_url = normalize_socket_path(base_url)
        self.timeout = timeout  # применяется к каждому list/inspect/stats запросу
        self._client = raw_client or self._create_client()

    def _create_client(self) -> Any:
        try:
            if not self.base_url:
                return docker.from_env(timeout=self.timeout)
            return docker.DockerClient(base_url=self.base_url, timeout=self.timeout)
        except CLIENT_ERRORS as exc:
            LOGGER.error(
                "Docker client init error via %s: %s",
                self.base_url or "environment",
                exc,
            )
            raise DockerAPIError(str(exc), context={"base_url": self.base_url}) from exc

    def get_raw_client(self) -> Any:
        """Возвращает внутренний docker client."""

        return self._client

    def ping(self) -> bool:
        """Проверяет доступность Docker."""

        try:
            self._client.ping()
            return True
        except CLIENT_ERRORS as exc:
            LOGGER.error("Docker ping failed: %s", exc)
            return False

    def close(self) -> None:
        """Закрывает HTTP-сессию клиента."""

        try:
            self._client.close()
        except CLIENT_ERRORS as exc:
            LOGGER.warning("Error while closing docker client: %s", exc)

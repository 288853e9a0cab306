"""Исключения слоя взаимодействия с Docker."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

LOGGER = logging.getLogger(__name__)


class DockerAPIError(Exception):
    """Базовая ошибка обращения к Docker с поддержкой контекста."""

    # Транзиентные ошибки логирует вызывающая сторона, здесь только трассировка
    log_level: int = logging.DEBUG

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)
        LOGGER.log(self.log_level, "%s | context=%s", message, self.context)


class ContainerNotFoundError(DockerAPIError):
    """Контейнер больше не существует в Docker."""

    def __init__(self, container_id: str) -> None:
        self.container_id = container_id
        super().__init__(
            f"No such container: {container_id}",
            context={"container_id": container_id},
        )


class EventStreamClosedError(DockerAPIError):
    """Поток событий Docker завершился без запроса на остановку."""

    log_level = logging.ERROR

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Docker event stream closed: {reason}", context={"reason": reason})


class SourceStartupError(DockerAPIError):
    """Фатальная ошибка запуска: реестр нельзя использовать в полусобранном виде."""

    log_level = logging.ERROR

    def __init__(self, stage: str, reason: str) -> None:
        self.stage = stage
        self.reason = reason
        super().__init__(
            f"Container source startup failed at {stage}: {reason}",
            context={"stage": stage, "reason": reason},
        )

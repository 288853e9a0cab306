"""Функции чтения контейнеров через Docker client и форматирования их полей."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from docker.errors import NotFound

from container_source.docker_api.client import CLIENT_ERRORS, DockerClientWrapper
from container_source.docker_api.exceptions import ContainerNotFoundError, DockerAPIError
from container_source.docker_api.models import ContainerDetails, ContainerSummary

PortBindings = Mapping[str, Optional[Sequence[Mapping[str, str]]]]

_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<zone>Z|[+-]\d{2}:\d{2})?$"
)


def list_containers(
    client: DockerClientWrapper, *, include_stopped: bool = True
) -> List[ContainerSummary]:
    """Возвращает краткий список контейнеров (аналог docker ps -a)."""

    raw = client.get_raw_client()
    try:
        rows = raw.api.containers(all=include_stopped)
    except CLIENT_ERRORS as exc:
        raise DockerAPIError(str(exc), context={"operation": "list"}) from exc
    return [
        ContainerSummary(
            id=row["Id"],
            names=list(row.get("Names") or []),
            state=row.get("State") or "",
        )
        for row in rows
    ]


def inspect_container(client: DockerClientWrapper, container_id: str) -> ContainerDetails:
    """Возвращает данные docker inspect, нужные для обновления контейнера."""

    raw = client.get_raw_client()
    try:
        attrs: Dict[str, Any] = raw.api.inspect_container(container_id)
    except NotFound as exc:
        raise ContainerNotFoundError(container_id) from exc
    except CLIENT_ERRORS as exc:
        raise DockerAPIError(
            str(exc), context={"operation": "inspect", "container_id": container_id}
        ) from exc

    config = attrs.get("Config") or {}
    network = attrs.get("NetworkSettings") or {}
    state = attrs.get("State") or {}
    return ContainerDetails(
        name=attrs.get("Name", ""),
        image=config.get("Image", ""),
        ports=dict(network.get("Ports") or {}),
        created=attrs.get("Created", ""),
        state=state.get("Status", ""),
    )


def format_ports(ports: PortBindings) -> str:
    """Собирает сводку портов: сначала только открытые, затем опубликованные на хосте."""

    exposed: List[str] = []
    published: List[str] = []
    for container_port, bindings in ports.items():
        if not bindings:
            exposed.append(container_port)
            continue
        for binding in bindings:
            host_ip = binding.get("HostIp", binding.get("HostIP", ""))
            host_port = binding.get("HostPort", "")
            published.append(f"{container_port} -> {host_ip}:{host_port}")
    return "\n".join(exposed + published)


def short_name(name: str) -> str:
    """Убирает ведущий '/' из имени, который Docker добавляет к основному имени."""

    return name[1:] if name.startswith("/") else name


def format_created(timestamp: str) -> str:
    """Форматирует время создания в виде ``Mon Jan 2 15:04:05 2006``.

    Docker отдаёт RFC3339 с наносекундами, которые ``datetime`` не разбирает,
    поэтому дробная часть обрезается до микросекунд. Нераспознанная строка
    возвращается без изменений.
    """

    match = _TIMESTAMP_RE.match(timestamp.strip())
    if match is None:
        return timestamp
    moment = datetime.strptime(match.group("base"), "%Y-%m-%dT%H:%M:%S")
    fraction = match.group("fraction")
    if fraction:
        moment = moment.replace(microsecond=int(fraction[:6].ljust(6, "0")))
    zone = match.group("zone")
    if zone and zone != "Z":
        sign = 1 if zone[0] == "+" else -1
        offset = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
        moment = moment.replace(tzinfo=timezone(sign * offset))
    elif zone:
        moment = moment.replace(tzinfo=timezone.utc)
    return f"{moment:%a %b} {moment.day} {moment:%H:%M:%S %Y}"

"""Порядок сортировки и фильтрация списка контейнеров для отображения."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Tuple

if TYPE_CHECKING:
    from container_source.core.container import Container

SortKey = Callable[["Container"], Tuple[Any, ...]]
ContainerFilter = Callable[["Container"], bool]

# Чем больше вес, тем выше контейнер при сортировке по состоянию
_STATE_WEIGHTS: Dict[str, int] = {
    "running": 3,
    "paused": 2,
    "restarting": 2,
    "exited": 1,
    "dead": 1,
}


def _metric(container: "Container", attribute: str) -> float:
    sample = container.latest_metrics()
    if sample is None:
        return 0
    return getattr(sample, attribute)


def _by_id(container: "Container") -> Tuple[Any, ...]:
    return (container.id,)


def _by_name(container: "Container") -> Tuple[Any, ...]:
    return (container.name, container.id)


def _by_state(container: "Container") -> Tuple[Any, ...]:
    return (-_STATE_WEIGHTS.get(container.state, 0), container.name, container.id)


def _by_cpu(container: "Container") -> Tuple[Any, ...]:
    return (-_metric(container, "cpu_percent"), container.name, container.id)


def _by_memory(container: "Container") -> Tuple[Any, ...]:
    return (-_metric(container, "memory_usage"), container.name, container.id)


def _by_network(container: "Container") -> Tuple[Any, ...]:
    traffic = _metric(container, "net_rx") + _metric(container, "net_tx")
    return (-traffic, container.name, container.id)


def _by_io(container: "Container") -> Tuple[Any, ...]:
    total = _metric(container, "io_read") + _metric(container, "io_write")
    return (-total, container.name, container.id)


SORT_KEYS: Dict[str, SortKey] = {
    "id": _by_id,
    "name": _by_name,
    "state": _by_state,
    "cpu": _by_cpu,
    "mem": _by_memory,
    "net": _by_network,
    "io": _by_io,
}

SORT_FIELDS: Tuple[str, ...] = tuple(SORT_KEYS)


def get_sort_key(field: str) -> SortKey:
    try:
        return SORT_KEYS[field]
    except KeyError:
        raise ValueError(f"Unknown sort field: {field}") from None


def make_filter(filter_text: str = "", show_all: bool = True) -> ContainerFilter:
    """Собирает предикат: подстрока в имени и, без show_all, только running."""

    needle = filter_text.strip().lower()

    def _predicate(container: "Container") -> bool:
        if not show_all and container.state != "running":
            return False
        if needle and needle not in container.name.lower():
            return False
        return True

    return _predicate

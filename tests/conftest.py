"""Общие подделки Docker-клиента, настроек и сборщиков метрик для тестов."""

from __future__ import annotations

import queue
import threading
import time
from typing import Any, Callable, Dict, Iterator, List, Optional

import pytest
from docker.errors import NotFound

from container_source.docker_api.client import DockerClientWrapper
from container_source.metrics.collector import ContainerMetrics

_END = object()


class FakeEventStream:
    """Имитирует CancellableStream: блокирующий итератор с close()."""

    def __init__(self) -> None:
        self._events: "queue.Queue[Any]" = queue.Queue()
        self.closed = False

    def push(self, payload: Dict[str, Any]) -> None:
        self._events.put(payload)

    def end(self) -> None:
        """Завершает поток так, как это делает упавший демон."""

        self._events.put(_END)

    def close(self) -> None:
        self.closed = True
        self._events.put(_END)

    def __iter__(self) -> Iterator[Any]:
        while True:
            item = self._events.get()
            if item is _END:
                return
            yield item


class FakeAPI:
    """Низкоуровневый APIClient: containers/inspect_container/stats."""

    def __init__(self) -> None:
        self.rows: List[Dict[str, Any]] = []
        self.inspect_results: Dict[str, Any] = {}
        self.inspect_calls: List[str] = []
        self.stats_result: Any = {}
        self.list_error: Optional[Exception] = None
        self.inspect_gate: Optional[threading.Event] = None

    def containers(self, all: bool = False) -> List[Dict[str, Any]]:
        if self.list_error is not None:
            raise self.list_error
        if all:
            return list(self.rows)
        return [row for row in self.rows if row.get("State") == "running"]

    def inspect_container(self, container_id: str) -> Dict[str, Any]:
        self.inspect_calls.append(container_id)
        if self.inspect_gate is not None:
            self.inspect_gate.wait(5)
        result = self.inspect_results.get(container_id)
        if result is None:
            raise NotFound(f"No such container: {container_id}")
        if isinstance(result, Exception):
            raise result
        return result

    def stats(self, container_id: str, stream: bool = True) -> Any:
        if isinstance(self.stats_result, Exception):
            raise self.stats_result
        return self.stats_result


class FakeRawClient:
    """docker.DockerClient с заранее заданными ответами."""

    def __init__(self) -> None:
        self.api = FakeAPI()
        self.stream = FakeEventStream()
        self.events_error: Optional[Exception] = None
        self.events_filters: Optional[Dict[str, Any]] = None
        self.ping_error: Optional[Exception] = None
        self.closed = False

    def add_container(
        self,
        container_id: str,
        name: str,
        state: str = "running",
        *,
        image: str = "nginx:latest",
        ports: Optional[Dict[str, Any]] = None,
        created: str = "2024-01-02T15:04:05.123456789Z",
    ) -> None:
        self.api.rows.append({"Id": container_id, "Names": [name], "State": state})
        self.api.inspect_results[container_id] = inspect_payload(
            name, state, image=image, ports=ports, created=created
        )

    def events(self, decode: bool = False, filters: Optional[Dict[str, Any]] = None) -> Any:
        if self.events_error is not None:
            raise self.events_error
        self.events_filters = filters
        return self.stream

    def ping(self) -> bool:
        if self.ping_error is not None:
            raise self.ping_error
        return True

    def close(self) -> None:
        self.closed = True


def inspect_payload(
    name: str,
    state: str,
    *,
    image: str = "nginx:latest",
    ports: Optional[Dict[str, Any]] = None,
    created: str = "2024-01-02T15:04:05.123456789Z",
) -> Dict[str, Any]:
    return {
        "Name": name,
        "Created": created,
        "Config": {"Image": image},
        "NetworkSettings": {"Ports": ports or {}},
        "State": {"Status": state},
    }


class FakeCollector:
    """Сборщик без потоков: только фиксирует вызовы start/stop."""

    def __init__(self, container_id: str) -> None:
        self.container_id = container_id
        self.started = 0
        self.stopped = 0
        self._running = False
        self.sample: Optional[ContainerMetrics] = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        self.started += 1
        self._running = True

    def stop(self) -> None:
        self.stopped += 1
        self._running = False

    def latest(self) -> Optional[ContainerMetrics]:
        return self.sample

    def samples(self) -> List[ContainerMetrics]:
        return [self.sample] if self.sample else []


class CollectorFactory:
    """Фабрика FakeCollector, запоминающая каждый созданный экземпляр."""

    def __init__(self) -> None:
        self.created: List[FakeCollector] = []
        self._lock = threading.Lock()

    def __call__(self, container_id: str) -> FakeCollector:
        collector = FakeCollector(container_id)
        with self._lock:
            self.created.append(collector)
        return collector

    def for_id(self, container_id: str) -> List[FakeCollector]:
        return [item for item in self.created if item.container_id == container_id]


class DummySettings:
    """Минимальные настройки: явно заданные значения, иначе default."""

    def __init__(self, **groups: Dict[str, Any]) -> None:
        self._groups = groups

    def get_value(self, group: str, key: str, default: Any = None) -> Any:
        return self._groups.get(group, {}).get(key, default)


def wait_for(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def raw_client() -> FakeRawClient:
    return FakeRawClient()


@pytest.fixture
def client(raw_client: FakeRawClient) -> DockerClientWrapper:
    return DockerClientWrapper(raw_client=raw_client)


@pytest.fixture
def collector_factory() -> CollectorFactory:
    return CollectorFactory()


@pytest.fixture
def eventually() -> Callable[..., bool]:
    return wait_for


@pytest.fixture
def make_settings() -> Callable[..., DummySettings]:
    return DummySettings


@pytest.fixture
def make_payload() -> Callable[..., Dict[str, Any]]:
    return inspect_payload

"""Тесты потокобезопасного реестра контейнеров."""

from __future__ import annotations

import threading

import pytest

from container_source.core.registry import ContainerRegistry
from container_source.core.sorting import get_sort_key, make_filter


@pytest.fixture
def registry(collector_factory) -> ContainerRegistry:
    return ContainerRegistry(collector_factory)


def test_get_or_create_is_idempotent(registry: ContainerRegistry, collector_factory) -> None:
    first = registry.get_or_create("abc")
    second = registry.get_or_create("abc")
    assert first is second
    assert len(collector_factory.for_id("abc")) == 1
    assert first.collector is collector_factory.created[0]


def test_concurrent_get_or_create_creates_exactly_one(
    registry: ContainerRegistry, collector_factory
) -> None:
    barrier = threading.Barrier(16)
    results = []
    lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        container = registry.get_or_create("shared")
        with lock:
            results.append(container)

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len({id(container) for container in results}) == 1
    assert len(collector_factory.for_id("shared")) == 1
    assert len(registry) == 1


def test_get_does_not_create(registry: ContainerRegistry, collector_factory) -> None:
    assert registry.get("missing") is None
    assert collector_factory.created == []


def test_delete_then_get_is_not_found(registry: ContainerRegistry) -> None:
    container = registry.get_or_create("abc")
    container.set_state("running")

    assert registry.delete("abc") is True
    assert registry.get("abc") is None
    assert "abc" not in registry
    assert not container.collector.running


def test_delete_missing_is_noop(registry: ContainerRegistry) -> None:
    assert registry.delete("missing") is False


def test_recreate_after_delete_gets_fresh_collector(
    registry: ContainerRegistry, collector_factory
) -> None:
    old = registry.get_or_create("abc")
    registry.delete("abc")
    new = registry.get_or_create("abc")
    assert new is not old
    assert len(collector_factory.for_id("abc")) == 2


def test_snapshot_is_independent_copy(registry: ContainerRegistry) -> None:
    registry.get_or_create("b")
    registry.get_or_create("a")

    snapshot = registry.snapshot()
    registry.delete("a")

    assert [container.id for container in snapshot] == ["a", "b"]
    assert [container.id for container in registry.snapshot()] == ["b"]


def test_snapshot_sorts_then_filters(registry: ContainerRegistry) -> None:
    for container_id, name, state in (
        ("1", "web", "running"),
        ("2", "api", "exited"),
        ("3", "worker", "running"),
    ):
        container = registry.get_or_create(container_id)
        container.set_meta("name", name)
        container.set_state(state)

    by_name = registry.snapshot(get_sort_key("name"))
    running = registry.snapshot(get_sort_key("name"), make_filter(show_all=False))
    reversed_names = registry.snapshot(get_sort_key("name"), reverse=True)

    assert [c.name for c in by_name] == ["api", "web", "worker"]
    assert [c.name for c in running] == ["web", "worker"]
    assert [c.name for c in reversed_names] == ["worker", "web", "api"]


def test_snapshot_has_unique_ids_under_concurrent_writes(registry: ContainerRegistry) -> None:
    stop = threading.Event()

    def churn() -> None:
        index = 0
        while not stop.is_set():
            container_id = f"c{index % 20}"
            registry.get_or_create(container_id)
            if index % 3 == 0:
                registry.delete(container_id)
            index += 1

    writers = [threading.Thread(target=churn) for _ in range(4)]
    for writer in writers:
        writer.start()
    try:
        for _ in range(200):
            ids = [container.id for container in registry.snapshot()]
            assert len(ids) == len(set(ids))
    finally:
        stop.set()
        for writer in writers:
            writer.join()


def test_close_releases_everything(registry: ContainerRegistry) -> None:
    container = registry.get_or_create("abc")
    container.set_state("running")
    registry.close()
    assert registry.closed
    assert len(registry) == 0
    assert container.released
    assert not container.collector.running


def test_get_or_create_after_close_is_not_registered(registry: ContainerRegistry) -> None:
    registry.close()
    container = registry.get_or_create("late")
    container.set_state("running")
    assert "late" not in registry
    assert container.released
    assert not container.collector.running

"""Тесты ограниченной очереди обновления."""

from __future__ import annotations

import threading

import pytest

from container_source.core.refresh_queue import QueueClosedError, RefreshQueue


def test_fifo_order() -> None:
    queue = RefreshQueue(5, poll_interval=0.01)
    for container_id in ("a", "b", "a"):
        queue.enqueue(container_id)
    assert [queue.dequeue(), queue.dequeue(), queue.dequeue()] == ["a", "b", "a"]


def test_invalid_capacity() -> None:
    with pytest.raises(ValueError):
        RefreshQueue(0)


def test_full_queue_blocks_producer_until_consumer_drains() -> None:
    queue = RefreshQueue(2, poll_interval=0.01)
    queue.enqueue("a")
    queue.enqueue("b")
    done = threading.Event()

    def producer() -> None:
        queue.enqueue("c")
        done.set()

    thread = threading.Thread(target=producer, daemon=True)
    thread.start()

    assert not done.wait(0.2)
    assert len(queue) == 2

    assert queue.dequeue() == "a"
    assert done.wait(2)
    assert [queue.dequeue(), queue.dequeue()] == ["b", "c"]
    thread.join(1)


def test_dequeue_timeout_returns_none() -> None:
    queue = RefreshQueue(1, poll_interval=0.01)
    assert queue.dequeue(timeout=0.05) is None


def test_close_drains_then_returns_none() -> None:
    queue = RefreshQueue(3, poll_interval=0.01)
    queue.enqueue("a")
    queue.close()

    assert queue.closed
    assert queue.dequeue() == "a"
    assert queue.dequeue() is None
    with pytest.raises(QueueClosedError):
        queue.enqueue("b")


def test_close_unblocks_waiting_producer() -> None:
    queue = RefreshQueue(1, poll_interval=0.01)
    queue.enqueue("a")
    errors = []

    def producer() -> None:
        try:
            queue.enqueue("b")
        except QueueClosedError as exc:
            errors.append(exc)

    thread = threading.Thread(target=producer, daemon=True)
    thread.start()
    queue.close()
    thread.join(2)

    assert not thread.is_alive()
    assert len(errors) == 1

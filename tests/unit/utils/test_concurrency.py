"""Serial executor behavior: ordering, failure isolation, bounded queue, shutdown."""

from __future__ import annotations

import threading

import pytest
from structlog.testing import capture_logs

from resource_validation.utils.concurrency import SerialExecutor


def test_tasks_run_in_submission_order() -> None:
    executor = SerialExecutor(queue_size=8)
    executor.start()
    seen: list[int] = []
    try:
        for index in range(5):
            assert executor.submit(lambda index=index: seen.append(index))
        assert executor.drain(timeout_seconds=2.0)
    finally:
        executor.shutdown()

    assert seen == [0, 1, 2, 3, 4]
    assert executor.completed_tasks == 5


def test_failing_task_is_logged_and_worker_survives() -> None:
    executor = SerialExecutor(queue_size=4)
    executor.start()
    seen: list[str] = []

    def boom() -> None:
        raise RuntimeError("kaput")

    try:
        with capture_logs() as logs:
            executor.submit(boom)
            executor.submit(lambda: seen.append("after"))
            assert executor.drain(timeout_seconds=2.0)
    finally:
        executor.shutdown()

    assert seen == ["after"]
    assert executor.failed_tasks == 1
    assert executor.completed_tasks == 1
    failures = [entry for entry in logs if entry["event"] == "serial_executor_task_failed"]
    assert failures and failures[0]["error"] == "kaput"
    assert failures[0]["log_level"] == "error"


def test_submit_refuses_when_queue_is_full() -> None:
    executor = SerialExecutor(queue_size=1)
    executor.start()
    gate = threading.Event()
    started = threading.Event()

    def blocker() -> None:
        started.set()
        gate.wait(timeout=2.0)

    try:
        assert executor.submit(blocker)
        assert started.wait(timeout=2.0)
        assert executor.submit(lambda: None)
        assert not executor.submit(lambda: None)
        assert executor.rejected_tasks == 1
    finally:
        gate.set()
        executor.shutdown()


def test_submit_before_start_is_refused() -> None:
    executor = SerialExecutor()

    assert executor.submit(lambda: None) is False
    assert executor.rejected_tasks == 1
    assert executor.drain(timeout_seconds=0.0)


def test_shutdown_is_idempotent_and_stops_worker() -> None:
    executor = SerialExecutor()
    executor.start()
    executor.start()
    assert executor.is_running

    executor.shutdown()
    executor.shutdown()

    assert not executor.is_running


@pytest.mark.parametrize("queue_size", [0, -1, True, 1.5])
def test_invalid_queue_size_is_rejected(queue_size: object) -> None:
    with pytest.raises(ValueError):
        SerialExecutor(queue_size=queue_size)  # type: ignore[arg-type]

from __future__ import annotations

import asyncio
import itertools

import numpy as np
import pytest

from mongars.config import SommeilCfg
from mongars.runtime import SommeilScheduler, TaskStatus, TaskType


def _scheduler(**overrides) -> SommeilScheduler:
    cfg = SommeilCfg(durations={}, **overrides)
    return SommeilScheduler(cfg, rng=np.random.default_rng(3), clock=lambda: 500.0)


def _idle_sequence(*values: bool):
    it = iter(values)
    return lambda: next(it, values[-1])


def test_queue_sorted_by_priority() -> None:
    sched = _scheduler()
    sched.queue_optimization("pruning", 5)
    sched.queue_optimization("consolidation", 9)
    queued = sched.get_queued_tasks()
    assert queued[0].type is TaskType.CONSOLIDATION
    assert [t.status for t in queued] == [TaskStatus.QUEUED, TaskStatus.QUEUED]


def test_equal_priorities_keep_insertion_order() -> None:
    sched = _scheduler()
    sched.queue_optimization(TaskType.INDEXING, 1)
    first = sched.queue_optimization(TaskType.PRUNING, 2)
    second = sched.queue_optimization(TaskType.RERANKING, 2)
    third = sched.queue_optimization(TaskType.CONSOLIDATION, 2)
    ids = [t.id for t in sched.get_queued_tasks()]
    assert ids[:3] == [first.id, second.id, third.id]
    assert len(set(ids)) == 4


def test_unknown_task_type_rejected() -> None:
    with pytest.raises(ValueError):
        _scheduler().queue_optimization("defrag", 1)


def test_schedule_maintenance_tasks_order() -> None:
    sched = _scheduler()
    sched.schedule_maintenance_tasks()
    queued = sched.get_queued_tasks()
    assert [t.type for t in queued] == [
        TaskType.CONSOLIDATION,
        TaskType.PRUNING,
        TaskType.RERANKING,
        TaskType.INDEXING,
    ]
    assert [t.priority for t in queued] == [3, 2, 2, 1]


def test_full_cycle_runs_every_task_and_updates_metrics() -> None:
    sched = _scheduler()
    sched.schedule_maintenance_tasks()
    tasks = sched.get_queued_tasks()
    counts: list[int] = []
    rebuilt: list[bool] = []

    async def on_consolidate(count: int) -> None:
        counts.append(count)

    async def on_index_rebuild() -> None:
        rebuilt.append(True)

    assert asyncio.run(sched.run_cycle(lambda: True, on_consolidate, on_index_rebuild)) is True
    assert all(t.status is TaskStatus.COMPLETED for t in tasks)
    assert all(t.duration is not None and t.duration >= 0.0 for t in tasks)
    assert sched.get_queued_tasks() == []

    metrics = sched.get_metrics()
    assert metrics.cycles_run == 1
    assert metrics.indices_rebuilt == 1
    assert rebuilt == [True]
    assert len(counts) == 1 and 5 <= counts[0] < 15
    assert metrics.memories_consolidated == counts[0]
    assert metrics.last_run_timestamp == 500.0
    assert metrics.total_optimization_time >= 0.0


def test_consolidation_count_is_seeded() -> None:
    seen = []
    for _ in range(2):
        sched = _scheduler()
        sched.queue_optimization("consolidation", 1)
        asyncio.run(sched.run_cycle(lambda: True))
        seen.append(sched.get_metrics().memories_consolidated)
    assert seen[0] == seen[1]


def test_preemption_requeues_unstarted_tasks() -> None:
    sched = _scheduler()
    sched.queue_optimization("consolidation", 3)
    sched.queue_optimization("pruning", 2)
    sched.queue_optimization("indexing", 1)
    tasks = sched.get_queued_tasks()

    assert asyncio.run(sched.run_cycle(_idle_sequence(True, False))) is True

    assert tasks[0].status is TaskStatus.COMPLETED
    requeued = sched.get_queued_tasks()
    assert [t.id for t in requeued] == [tasks[1].id, tasks[2].id]
    assert all(t.status is TaskStatus.QUEUED for t in requeued)
    assert sched.get_metrics().cycles_run == 1
    assert sched.get_metrics().indices_rebuilt == 0


def test_not_idle_at_entry_is_a_noop() -> None:
    sched = _scheduler()
    sched.schedule_maintenance_tasks()
    assert asyncio.run(sched.run_cycle(lambda: False)) is False
    assert len(sched.get_queued_tasks()) == 4
    assert sched.get_metrics().cycles_run == 0


def test_failing_handler_is_isolated() -> None:
    sched = _scheduler()
    sched.queue_optimization("consolidation", 2)
    sched.queue_optimization("pruning", 1)
    first, second = sched.get_queued_tasks()

    async def boom(count: int) -> None:
        raise RuntimeError("store offline")

    asyncio.run(sched.run_cycle(lambda: True, boom))
    assert first.status is TaskStatus.FAILED
    assert first.duration is not None
    assert second.status is TaskStatus.COMPLETED
    assert sched.get_metrics().cycles_run == 1


def test_sync_callbacks_are_accepted() -> None:
    sched = _scheduler()
    sched.queue_optimization("indexing", 1)
    calls = []
    asyncio.run(sched.run_cycle(lambda: True, on_index_rebuild=lambda: calls.append("idx")))
    assert calls == ["idx"]


def test_idle_predicate_error_counts_as_busy() -> None:
    sched = _scheduler()
    sched.queue_optimization("pruning", 1)
    sched.queue_optimization("reranking", 1)
    calls = itertools.count()

    def flaky() -> bool:
        if next(calls) == 0:
            return True
        raise OSError("sensor unavailable")

    asyncio.run(sched.run_cycle(flaky))
    statuses = [t.status for t in sched.get_queued_tasks()]
    assert statuses == [TaskStatus.QUEUED]


def test_reentrant_cycle_is_skipped() -> None:
    sched = _scheduler()
    sched.queue_optimization("consolidation", 1)
    results = {}

    async def scenario() -> None:
        gate = asyncio.Event()

        async def slow_consolidate(count: int) -> None:
            results["inner"] = await sched.run_cycle(lambda: True)
            gate.set()

        results["outer"] = await sched.run_cycle(lambda: True, slow_consolidate)
        await gate.wait()

    asyncio.run(scenario())
    assert results == {"inner": False, "outer": True}
    assert sched.is_running is False
    assert sched.get_metrics().cycles_run == 1


def test_simulated_durations_use_injected_sleep() -> None:
    slept = []

    async def fake_sleep(seconds: float) -> None:
        slept.append(seconds)

    cfg = SommeilCfg(durations={"pruning": 0.3, "reranking": 0.4})
    sched = SommeilScheduler(cfg, rng=np.random.default_rng(0), sleep=fake_sleep)
    sched.queue_optimization("pruning", 2)
    sched.queue_optimization("reranking", 1)
    sched.queue_optimization("indexing", 0)
    asyncio.run(sched.run_cycle(lambda: True))
    assert slept == [0.3, 0.4]


def test_cancelled_cycle_requeues_current_and_remaining() -> None:
    sched = _scheduler()
    sched.queue_optimization("consolidation", 2)
    sched.queue_optimization("indexing", 1)

    async def scenario() -> None:
        started = asyncio.Event()

        async def hang(count: int) -> None:
            started.set()
            await asyncio.sleep(3600)

        task = asyncio.create_task(sched.run_cycle(lambda: True, hang))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    queued = sched.get_queued_tasks()
    assert [t.type for t in queued] == [TaskType.CONSOLIDATION, TaskType.INDEXING]
    assert all(t.status is TaskStatus.QUEUED for t in queued)
    assert sched.is_running is False


def test_clear_and_reset_metrics() -> None:
    sched = _scheduler()
    sched.schedule_maintenance_tasks()
    asyncio.run(sched.run_cycle(lambda: True))
    sched.schedule_maintenance_tasks()
    sched.clear()
    assert sched.get_queued_tasks() == []
    assert sched.get_metrics().cycles_run == 1
    sched.reset_metrics()
    assert sched.get_metrics().cycles_run == 0
    assert sched.get_metrics().last_run_timestamp is None


def test_metrics_copy_is_detached() -> None:
    sched = _scheduler()
    snapshot = sched.get_metrics()
    snapshot.cycles_run = 99
    assert sched.get_metrics().cycles_run == 0

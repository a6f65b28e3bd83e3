# -*- coding: utf-8 -*-
"""Idle-triggered maintenance cycles ("sommeil paradoxal").

A cycle drains the priority queue one task at a time while the host reports
idleness.  The entry check admits the first task; idleness is then re-checked
between tasks only, so a running handler is
never interrupted.  Tasks not yet started when the host wakes up go back to
the queue as ``queued``.  A failing handler marks its own task ``failed`` and
the cycle moves on.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, Union

import numpy as np

from mongars.config import SommeilCfg

from .tasks import OptimizationTask, SommeilMetrics, TaskStatus, TaskType, new_task_id

logger = logging.getLogger(__name__)

IdlePredicate = Callable[[], bool]
ConsolidateCallback = Callable[[int], Union[Awaitable[None], None]]
IndexRebuildCallback = Callable[[], Union[Awaitable[None], None]]


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class SommeilScheduler:
    """Priority queue of maintenance tasks drained during idle periods."""

    def __init__(
        self,
        cfg: SommeilCfg | None = None,
        *,
        rng: np.random.Generator | None = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        self.cfg = cfg or SommeilCfg()
        self._rng = rng if rng is not None else np.random.default_rng(self.cfg.seed)
        self._clock = clock or time.time
        self._sleep = sleep or asyncio.sleep
        self._tasks: List[OptimizationTask] = []
        self._metrics = SommeilMetrics()
        self._running = False

    # ------------------------------------------------------------------ queue
    def queue_optimization(self, task_type: TaskType | str, priority: int = 1) -> OptimizationTask:
        kind = TaskType(task_type)
        now = float(self._clock())
        task = OptimizationTask(
            id=new_task_id(now),
            type=kind,
            priority=int(priority),
            timestamp=now,
        )
        self._tasks.append(task)
        self._sort_queue()
        logger.info("queued %s optimization (priority=%d)", kind.value, task.priority)
        return task

    def schedule_maintenance_tasks(self) -> List[OptimizationTask]:
        priorities = self.cfg.priorities
        return [
            self.queue_optimization(kind, int(priorities.get(kind.value, 1)))
            for kind in (TaskType.CONSOLIDATION, TaskType.PRUNING, TaskType.RERANKING, TaskType.INDEXING)
        ]

    def _sort_queue(self) -> None:
        # list.sort is stable, also with reverse=True
        self._tasks.sort(key=lambda t: t.priority, reverse=True)

    def _requeue(self, tasks: List[OptimizationTask]) -> None:
        for task in tasks:
            task.status = TaskStatus.QUEUED
            task.duration = None
        self._tasks.extend(tasks)
        self._sort_queue()

    def clear(self) -> None:
        self._tasks = []

    def reset_metrics(self) -> None:
        self._metrics = SommeilMetrics()

    # ------------------------------------------------------------------ cycle
    @property
    def is_running(self) -> bool:
        return self._running

    async def run_cycle(
        self,
        is_idle: IdlePredicate,
        on_consolidate: ConsolidateCallback | None = None,
        on_index_rebuild: IndexRebuildCallback | None = None,
    ) -> bool:
        """Run one maintenance pass; return ``False`` when the pass was skipped."""
        if self._running:
            logger.info("sommeil cycle already running, skipping")
            return False
        if not self._check_idle(is_idle):
            logger.info("system not idle, deferring optimization")
            return False

        self._running = True
        started = time.perf_counter()
        pending, self._tasks = self._tasks, []
        processed = 0
        logger.info("starting sommeil cycle (%d tasks queued)", len(pending))
        try:
            for index, task in enumerate(pending):
                # the entry check above covers the first task
                if index > 0 and not self._check_idle(is_idle):
                    self._requeue(pending[index:])
                    logger.info(
                        "system became active, pausing cycle (%d tasks requeued)",
                        len(pending) - index,
                    )
                    break
                try:
                    await self._run_task(task, on_consolidate, on_index_rebuild)
                except asyncio.CancelledError:
                    self._requeue(pending[index:])
                    raise
                processed += 1
        finally:
            elapsed = time.perf_counter() - started
            self._metrics.cycles_run += 1
            self._metrics.total_optimization_time += elapsed
            self._metrics.last_run_timestamp = float(self._clock())
            self._running = False
        logger.info("sommeil cycle completed in %.3fs (%d tasks processed)", elapsed, processed)
        return True

    def _check_idle(self, is_idle: IdlePredicate) -> bool:
        try:
            return bool(is_idle())
        except Exception:
            logger.warning("idle predicate failed; treating host as busy", exc_info=True)
            return False

    async def _run_task(
        self,
        task: OptimizationTask,
        on_consolidate: ConsolidateCallback | None,
        on_index_rebuild: IndexRebuildCallback | None,
    ) -> None:
        task.status = TaskStatus.RUNNING
        started = time.perf_counter()
        try:
            await self._execute(task, on_consolidate, on_index_rebuild)
        except Exception:
            task.status = TaskStatus.FAILED
            logger.warning("task %s (%s) failed", task.id, task.type.value, exc_info=True)
        else:
            task.status = TaskStatus.COMPLETED
        finally:
            task.duration = time.perf_counter() - started

    async def _execute(
        self,
        task: OptimizationTask,
        on_consolidate: ConsolidateCallback | None,
        on_index_rebuild: IndexRebuildCallback | None,
    ) -> None:
        kind = task.type
        if kind is TaskType.CONSOLIDATION:
            await self._consolidate(on_consolidate)
        elif kind is TaskType.PRUNING:
            logger.debug("pruning weak memories")
            await self._simulate(kind)
        elif kind is TaskType.RERANKING:
            logger.debug("re-ranking memories by importance")
            await self._simulate(kind)
        elif kind is TaskType.INDEXING:
            await self._rebuild_indices(on_index_rebuild)
        else:
            raise ValueError(f"unknown task type: {kind!r}")

    async def _simulate(self, kind: TaskType) -> None:
        duration = float(self.cfg.durations.get(kind.value, 0.0))
        if duration > 0.0:
            await self._sleep(duration)

    async def _consolidate(self, callback: ConsolidateCallback | None) -> None:
        await self._simulate(TaskType.CONSOLIDATION)
        low = int(self.cfg.consolidation_min)
        high = max(low + 1, int(self.cfg.consolidation_max))
        count = int(self._rng.integers(low, high))
        self._metrics.memories_consolidated += count
        if callback is not None:
            await _maybe_await(callback(count))
        logger.info("consolidated %d memories", count)

    async def _rebuild_indices(self, callback: IndexRebuildCallback | None) -> None:
        await self._simulate(TaskType.INDEXING)
        self._metrics.indices_rebuilt += 1
        if callback is not None:
            await _maybe_await(callback())
        logger.info("index rebuild completed")

    # ---------------------------------------------------------------- getters
    def get_metrics(self) -> SommeilMetrics:
        return self._metrics.copy()

    def get_queued_tasks(self) -> List[OptimizationTask]:
        return list(self._tasks)


__all__ = [
    "ConsolidateCallback",
    "IdlePredicate",
    "IndexRebuildCallback",
    "SommeilScheduler",
]

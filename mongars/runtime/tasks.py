from __future__ import annotations

import itertools
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional


class TaskType(str, Enum):
    CONSOLIDATION = "consolidation"
    PRUNING = "pruning"
    RERANKING = "reranking"
    INDEXING = "indexing"


class TaskStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


_sequence = itertools.count(1)


def new_task_id(now: float | None = None) -> str:
    millis = int((time.time() if now is None else now) * 1000)
    return f"opt_{millis}_{next(_sequence):05x}"


@dataclass
class OptimizationTask:
    id: str
    type: TaskType
    priority: int
    timestamp: float
    status: TaskStatus = TaskStatus.QUEUED
    # seconds; set once the task completes or fails
    duration: Optional[float] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["type"] = self.type.value
        payload["status"] = self.status.value
        return payload


@dataclass
class SommeilMetrics:
    cycles_run: int = 0
    total_optimization_time: float = 0.0
    memories_consolidated: int = 0
    indices_rebuilt: int = 0
    last_run_timestamp: Optional[float] = None

    def copy(self) -> "SommeilMetrics":
        return SommeilMetrics(**asdict(self))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "OptimizationTask",
    "SommeilMetrics",
    "TaskStatus",
    "TaskType",
    "new_task_id",
]

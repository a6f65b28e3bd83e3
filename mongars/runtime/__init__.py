from __future__ import annotations

from .loop import CognitiveLoop, TickResult
from .sommeil import SommeilScheduler
from .tasks import OptimizationTask, SommeilMetrics, TaskStatus, TaskType

__all__ = [
    "CognitiveLoop",
    "OptimizationTask",
    "SommeilMetrics",
    "SommeilScheduler",
    "TaskStatus",
    "TaskType",
    "TickResult",
]

# -*- coding: utf-8 -*-
"""Per-turn driver tying the affect simulator, self-model and sommeil cycles.

One ``tick`` advances the affective field, records the inner state and
refreshes the reflective scores.  ``maintenance`` runs one sommeil cycle; the
number of memories it consolidates becomes the intrinsic stimulus of the next
tick.  ``run`` polls ``maintenance`` on a fixed interval until stopped.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Iterable, List, Mapping, Optional

import numpy as np

from mongars.affect import AffectiveDynamicsParameters, AffectiveField, AffectiveFieldSimulator, Regime
from mongars.affect.dynamics import TrajectoryAnalysis
from mongars.config import LoopCfg, MongarsCfg
from mongars.mind import InnerStateSnapshot, ReflectiveModel

from .sommeil import IdlePredicate, SommeilScheduler

logger = logging.getLogger(__name__)

TelemetryHook = Callable[[str, Mapping[str, Any]], Any]


@dataclass
class TickResult:
    affect: AffectiveField
    snapshot: InnerStateSnapshot
    regime: Regime
    self_coherence: float
    narrative_continuity: float
    intrinsic_stimulus: float


class CognitiveLoop:
    def __init__(
        self,
        simulator: AffectiveFieldSimulator,
        reflective: ReflectiveModel,
        scheduler: SommeilScheduler,
        is_idle: IdlePredicate,
        *,
        cfg: LoopCfg | None = None,
        initial: AffectiveField | None = None,
        telemetry_hook: Optional[TelemetryHook] = None,
        check_interval: float | None = None,
    ) -> None:
        self.simulator = simulator
        self.reflective = reflective
        self.scheduler = scheduler
        self.is_idle = is_idle
        self.cfg = cfg or LoopCfg()
        self.telemetry_hook = telemetry_hook
        self.check_interval = float(
            scheduler.cfg.check_interval if check_interval is None else check_interval
        )
        self.current = initial or AffectiveField.zero()
        self.history: Deque[AffectiveField] = deque([self.current], maxlen=max(1, self.cfg.affect_history))
        self.ticks = 0
        self._pending_stimulus = 0.0

    @classmethod
    def from_cfg(
        cls,
        cfg: MongarsCfg,
        is_idle: IdlePredicate,
        *,
        telemetry_hook: Optional[TelemetryHook] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> "CognitiveLoop":
        simulator = AffectiveFieldSimulator(
            AffectiveDynamicsParameters.from_mapping(cfg.affect.dynamics),
            dt=cfg.affect.dt,
            clock=clock,
        )
        reflective = ReflectiveModel(cfg.reflective, clock=clock)
        scheduler = SommeilScheduler(cfg.sommeil, clock=clock)
        return cls(
            simulator,
            reflective,
            scheduler,
            is_idle,
            cfg=cfg.loop,
            telemetry_hook=telemetry_hook,
        )

    @property
    def pending_stimulus(self) -> float:
        return self._pending_stimulus

    # ------------------------------------------------------------------- turn
    def tick(
        self,
        external_input: float = 0.0,
        meta_feedback: float = 0.0,
        *,
        attention: Iterable[str] = (),
        predictions: Mapping[str, float] | None = None,
        cognitive_load: float | None = None,
        behavior_pattern: str | None = None,
        feedback_score: float = 0.5,
    ) -> TickResult:
        stimulus, self._pending_stimulus = self._pending_stimulus, 0.0
        previous = self.current
        self.current = self.simulator.step(previous, external_input, meta_feedback, stimulus)
        self.history.append(self.current)

        load = self.cfg.cognitive_load if cognitive_load is None else cognitive_load
        snapshot = self.reflective.monitor(self.current, load, attention, predictions)
        delta = abs(self.current.v - previous.v) + abs(self.current.a - previous.a)
        self.reflective.update_meta_model(
            delta,
            behavior_pattern or self.cfg.behavior_pattern,
            feedback_score,
        )
        coherence = self.reflective.evaluate_self_coherence()
        continuity = self.reflective.evaluate_narrative_continuity()
        regime = self.simulator.regime(self.current)

        self.ticks += 1
        every = int(self.cfg.schedule_every_ticks)
        if every > 0 and self.ticks % every == 0:
            tasks = self.scheduler.schedule_maintenance_tasks()
            self._emit(
                "sommeil_maintenance_scheduled",
                {"tick": self.ticks, "tasks": [task.type.value for task in tasks]},
            )

        return TickResult(
            affect=self.current,
            snapshot=snapshot,
            regime=regime,
            self_coherence=coherence,
            narrative_continuity=continuity,
            intrinsic_stimulus=stimulus,
        )

    def trajectory_analysis(self) -> TrajectoryAnalysis:
        return self.simulator.analyze_trajectory(list(self.history))

    # ------------------------------------------------------------ maintenance
    async def maintenance(self) -> bool:
        ran = await self.scheduler.run_cycle(
            self.is_idle,
            self._on_consolidate,
            self._on_index_rebuild,
        )
        if ran:
            self._emit("sommeil_cycle", self.scheduler.get_metrics().to_dict())
        return ran

    async def _on_consolidate(self, count: int) -> None:
        boost = count * float(self.cfg.stimulus_per_memory)
        self._pending_stimulus = float(np.clip(self._pending_stimulus + boost, 0.0, self.cfg.max_stimulus))
        self._emit("sommeil_consolidate", {"count": count, "intrinsic_stimulus": self._pending_stimulus})

    async def _on_index_rebuild(self) -> None:
        self._emit("sommeil_index_rebuild", {})

    async def run(self, stop_event: asyncio.Event) -> None:
        logger.info("cognitive loop polling sommeil every %.1fs", self.check_interval)
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.check_interval)
            except asyncio.TimeoutError:
                await self.maintenance()

    def _emit(self, name: str, payload: Mapping[str, Any]) -> None:
        if self.telemetry_hook is None:
            return
        try:
            self.telemetry_hook(name, payload)
        except Exception as exc:
            logger.warning("Telemetry hook failed for %s: %s", name, exc)

    def recent_affect(self, count: int = 10) -> List[AffectiveField]:
        return list(self.history)[-count:]


__all__ = ["CognitiveLoop", "TelemetryHook", "TickResult"]

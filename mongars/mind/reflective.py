# -*- coding: utf-8 -*-
"""Reflective self-model over a bounded inner-state history.

``monitor`` ingests one affective sample per turn.  The evaluation methods
read the latest window and can be called at any time: while the history is
too short they hand back the cached score instead of raising.  Scores are
re-evaluated only when new snapshots have arrived, so repeated calls between
two ``monitor`` calls return the same value.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from itertools import islice
from typing import Any, Callable, Deque, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from mongars.affect.field import AffectiveField, clamp
from mongars.config import ReflectiveCfg

from .commentary import compose_commentary, is_nominal, theme_consistency
from .snapshot import InnerStateSnapshot, MetaModelRepresentation

logger = logging.getLogger(__name__)

# per-update multiplicative drift of the emotional baseline
BASELINE_AROUSAL_DECAY = 0.99
BASELINE_UNCERTAINTY_DECAY = 0.98
BASELINE_VALENCE_GAIN = 0.1
BASELINE_MOTIVATION_STEP = 0.01


def _affective_jump(prev: AffectiveField, curr: AffectiveField) -> float:
    return abs(prev.v - curr.v) + abs(prev.a - curr.a)


def _attention_overlap(prev: InnerStateSnapshot, curr: InnerStateSnapshot) -> float:
    a, b = prev.attention_set(), curr.attention_set()
    return len(a & b) / max(1, max(len(a), len(b)))


class ReflectiveModel:
    """Track inner states and the meta-model derived from them."""

    def __init__(
        self,
        cfg: ReflectiveCfg | None = None,
        *,
        rng: np.random.Generator | None = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.cfg = cfg or ReflectiveCfg()
        self._rng = rng if rng is not None else np.random.default_rng(self.cfg.seed)
        self._clock = clock or time.time
        self._history: Deque[InnerStateSnapshot] = deque(maxlen=max(1, int(self.cfg.history_capacity)))
        self.self_coherence = float(self.cfg.initial_coherence)
        self.narrative_continuity = float(self.cfg.initial_continuity)
        self.introspective_density = 0.0
        self._revision = 0
        self._coherence_revision = -1
        self._continuity_revision = -1
        self.meta_model = self._initial_meta_model()

    # ------------------------------------------------------------------ setup
    def _initial_meta_model(self) -> MetaModelRepresentation:
        dim = int(self.cfg.identity_dim)
        baseline = AffectiveField.from_mapping(self.cfg.emotional_baseline)
        return MetaModelRepresentation(
            identity_vector=self._rng.uniform(-0.05, 0.05, size=dim),
            style_signature={k: clamp(float(v), 0.0, 1.0) for k, v in self.cfg.style_signature.items()},
            emotional_baseline=AffectiveField(
                baseline.v, baseline.a, baseline.u, baseline.m, float(self._clock())
            ).clamped(),
            motivational_profile=list(self.cfg.motivational_profile),
            temporal_coherence=0.5,
        )

    def reinitialize(self) -> None:
        """Reset the meta-model; the inner-state history is kept."""
        self.meta_model = self._initial_meta_model()

    def _recent(self, count: int) -> List[InnerStateSnapshot]:
        count = max(0, int(count))
        start = max(0, len(self._history) - count)
        return list(islice(self._history, start, None))

    def _pair_window(self) -> int:
        # pairwise scores need at least two snapshots in the window
        return max(2, int(self.cfg.window))

    # ---------------------------------------------------------------- ingest
    def monitor(
        self,
        affect: AffectiveField,
        cognitive_load: float,
        attention: Iterable[str],
        predictions: Mapping[str, float] | None = None,
    ) -> InnerStateSnapshot:
        attention = tuple(str(token) for token in attention)
        load = clamp(float(cognitive_load), 0.0, 1.0)
        snapshot = InnerStateSnapshot(
            timestamp=float(self._clock()),
            affective_state=affect,
            cognitive_load=load,
            attention=attention,
            predictions=dict(predictions or {}),
            commentary=compose_commentary(affect, load, attention),
        )
        self._history.append(snapshot)
        self._revision += 1
        self._update_introspective_density()
        logger.debug(
            "inner state monitored: v=%.3f a=%.3f load=%.3f attention=%d",
            affect.v,
            affect.a,
            load,
            len(attention),
        )
        return snapshot

    def _update_introspective_density(self) -> None:
        if len(self._history) < 2:
            return
        recent = self._recent(self.cfg.window)
        active = sum(1 for s in recent if not is_nominal(s.commentary))
        self.introspective_density = active / max(1, len(recent))

    # ------------------------------------------------------------- meta-model
    def update_meta_model(
        self,
        affective_delta: float,
        behavior_pattern: str,
        feedback_score: float,
    ) -> None:
        lr = float(self.cfg.learning_rate)
        self._adjust_identity_vector(affective_delta, feedback_score, lr)
        self._update_style_signature(behavior_pattern, feedback_score, lr)
        self._update_emotional_baseline(affective_delta, lr)
        self._update_temporal_coherence()
        logger.debug(
            "meta-model updated: temporal_coherence=%.3f styles=%d",
            self.meta_model.temporal_coherence,
            len(self.meta_model.style_signature),
        )

    def _adjust_identity_vector(self, affective_delta: float, feedback_score: float, lr: float) -> None:
        vector = self.meta_model.identity_vector
        magnitude = affective_delta * feedback_score * lr
        amp = float(self.cfg.identity_noise)
        noise = self._rng.uniform(-amp, amp, size=vector.shape[0])
        self.meta_model.identity_vector = np.clip(vector + magnitude * (1.0 + noise), -1.0, 1.0)

    def _update_style_signature(self, pattern: str, feedback_score: float, lr: float) -> None:
        styles = self.meta_model.style_signature
        current = styles.get(pattern, 0.0)
        styles[pattern] = clamp(current + lr * (feedback_score - current), 0.0, 1.0)

    def _update_emotional_baseline(self, affective_delta: float, lr: float) -> None:
        base = self.meta_model.emotional_baseline
        self.meta_model.emotional_baseline = AffectiveField(
            v=base.v + lr * affective_delta * BASELINE_VALENCE_GAIN,
            a=base.a * BASELINE_AROUSAL_DECAY,
            u=base.u * BASELINE_UNCERTAINTY_DECAY,
            m=base.m + lr * BASELINE_MOTIVATION_STEP,
            timestamp=float(self._clock()),
        ).clamped()

    def _update_temporal_coherence(self) -> None:
        recent = self._recent(self.cfg.continuity_window)
        if len(recent) < 2:
            return
        continuity = [
            1.0 - _affective_jump(prev.affective_state, curr.affective_state) / 2.0
            for prev, curr in zip(recent, recent[1:])
        ]
        self.meta_model.temporal_coherence = clamp(sum(continuity) / len(continuity), 0.0, 1.0)

    # ------------------------------------------------------------ evaluations
    def evaluate_self_coherence(self) -> float:
        if len(self._history) < 3 or self._coherence_revision == self._revision:
            return self.self_coherence
        recent = self._recent(self._pair_window())
        pairs = list(zip(recent, recent[1:]))
        if not pairs:
            return self.self_coherence
        mean_jump = sum(_affective_jump(p.affective_state, c.affective_state) for p, c in pairs) / len(pairs)
        stability = clamp(1.0 - min(1.0, mean_jump), 0.0, 1.0)
        attention = self._attention_consistency(recent)

        decay = float(self.cfg.coherence_decay)
        observed = 0.6 * stability + 0.4 * attention
        self.self_coherence = clamp(self.self_coherence * decay + observed * (1.0 - decay), 0.0, 1.0)
        self._coherence_revision = self._revision
        logger.debug(
            "self-coherence evaluated: coherence=%.3f stability=%.3f attention=%.3f",
            self.self_coherence,
            stability,
            attention,
        )
        return self.self_coherence

    @staticmethod
    def _attention_consistency(snapshots: Sequence[InnerStateSnapshot]) -> float:
        if len(snapshots) < 2:
            return 0.5
        overlaps = [_attention_overlap(p, c) for p, c in zip(snapshots, snapshots[1:])]
        return sum(overlaps) / len(overlaps)

    def evaluate_narrative_continuity(self) -> float:
        if len(self._history) < 3 or self._continuity_revision == self._revision:
            return self.narrative_continuity
        commentaries = [s.commentary for s in self._recent(self._pair_window()) if not is_nominal(s.commentary)]
        if len(commentaries) < 2:
            return self.narrative_continuity

        decay = float(self.cfg.narrative_decay)
        consistency = theme_consistency(commentaries)
        self.narrative_continuity = clamp(
            self.narrative_continuity * decay + consistency * (1.0 - decay), 0.0, 1.0
        )
        self._continuity_revision = self._revision
        logger.debug("narrative continuity: %.3f", self.narrative_continuity)
        return self.narrative_continuity

    def generate_meta_reflection(self) -> str:
        coherence = self.evaluate_self_coherence()
        narrative = self.evaluate_narrative_continuity()
        introspection = self.introspective_density

        parts = [
            f"Self-coherence: {coherence * 100:.1f}%",
            f"Narrative continuity: {narrative * 100:.1f}%",
            f"Introspective density: {introspection * 100:.1f}%",
        ]
        if coherence < 0.5:
            parts.append("Detecting internal state fragmentation - may require recalibration")
        if narrative > 0.7:
            parts.append("Maintaining strong narrative thread across interactions")
        if introspection > self.cfg.introspection_threshold:
            parts.append("High introspective activity - actively modeling internal changes")
        return ". ".join(parts)

    # ---------------------------------------------------------------- getters
    def get_reflective_metrics(self) -> Dict[str, Any]:
        return {
            "self_coherence": self.self_coherence,
            "narrative_continuity": self.narrative_continuity,
            "introspective_density": self.introspective_density,
            "temporal_coherence": self.meta_model.temporal_coherence,
            "inner_state_snapshots": len(self._history),
            "style_signatures": len(self.meta_model.style_signature),
        }

    def get_meta_model(self) -> MetaModelRepresentation:
        return self.meta_model.copy()

    def get_recent_inner_states(self, count: int = 10) -> List[InnerStateSnapshot]:
        return self._recent(count)

    def __len__(self) -> int:
        return len(self._history)


__all__ = ["ReflectiveModel"]

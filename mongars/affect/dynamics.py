# -*- coding: utf-8 -*-
"""Coupled affect ODEs integrated with explicit Euler steps.

The simulator is a pure function of (state, inputs): it owns no history.
Trajectory analyses (energy, entropy, stability) operate on whatever window
the caller hands in.

Preconditions
-------------
Inputs are used as-is.  NaN or infinite ``external_input`` /
``meta_feedback`` / ``intrinsic_stimulus`` propagate into the result; callers
are expected to feed finite values.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .field import AffectiveDynamicsParameters, AffectiveField, clamp
from .regime import Regime, classify_regime

DEFAULT_DT = 0.1
ENTROPY_EPS = 1e-4
_DIMS = ("v", "a", "u", "m")


@dataclass
class TrajectoryAnalysis:
    history: List[AffectiveField] = field(default_factory=list)
    energy: float = 0.0
    entropy: float = 0.0
    stability: float = 0.0


def _excitation(external_input: float) -> float:
    """Squash an unbounded drive into [0, 1]."""
    return math.tanh(2.0 * external_input) / 2.0 + 0.5


def _cycled(sequence: Sequence[float], index: int) -> float:
    if not sequence:
        return 0.0
    return float(sequence[index % len(sequence)])


class AffectiveFieldSimulator:
    """Advance an :class:`AffectiveField` under the configured dynamics."""

    def __init__(
        self,
        dynamics: AffectiveDynamicsParameters | None = None,
        *,
        dt: float = DEFAULT_DT,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._dynamics = dynamics or AffectiveDynamicsParameters()
        self.dt = float(dt)
        self._clock = clock or time.time

    # ------------------------------------------------------------------ params
    @property
    def dynamics(self) -> AffectiveDynamicsParameters:
        # frozen dataclass; handing out the instance is as good as a copy
        return self._dynamics

    def set_dynamics(self, **overrides: float) -> AffectiveDynamicsParameters:
        self._dynamics = self._dynamics.replace(**overrides)
        return self._dynamics

    # -------------------------------------------------------------- integration
    def step(
        self,
        current: AffectiveField,
        external_input: float,
        meta_feedback: float,
        intrinsic_stimulus: float,
        dt: float | None = None,
    ) -> AffectiveField:
        p = self._dynamics
        h = self.dt if dt is None else float(dt)
        v, a, u, m = current.v, current.a, current.u, current.m

        g_e = _excitation(external_input)
        dv = -p.lambda_v * v + p.wve * g_e + p.wvm * m - p.wvu * u
        da = -p.lambda_a * a + p.wae * g_e + p.wam * m
        prediction_error = abs(v - 0.5)
        du = -p.lambda_u * u + p.alpha * prediction_error - p.beta_u * meta_feedback
        dm = -p.lambda_m * m + intrinsic_stimulus - p.gamma_m * v + p.eta_u * (1.0 - u)

        return AffectiveField(
            v=v + h * dv,
            a=a + h * da,
            u=u + h * du,
            m=m + h * dm,
            timestamp=float(self._clock()),
        ).clamped()

    def simulate_trajectory(
        self,
        initial: AffectiveField,
        steps: int,
        input_sequence: Sequence[float],
        meta_sequence: Sequence[float],
        stimulus_sequence: Sequence[float],
    ) -> List[AffectiveField]:
        """Apply :meth:`step` ``steps`` times, cycling each input sequence.

        The returned list starts with ``initial`` and has ``steps + 1`` items.
        Empty sequences contribute a constant 0.
        """
        trajectory = [initial]
        for i in range(max(0, int(steps))):
            trajectory.append(
                self.step(
                    trajectory[-1],
                    _cycled(input_sequence, i),
                    _cycled(meta_sequence, i),
                    _cycled(stimulus_sequence, i),
                )
            )
        return trajectory

    # ---------------------------------------------------------------- analyses
    def energy(self, field: AffectiveField) -> float:
        """Lyapunov-style scalar: half the decay-weighted squared norm."""
        weights = np.asarray(self._dynamics.decays(), dtype=float)
        return float(0.5 * np.sum(weights * field.as_array() ** 2))

    def variances(self, history: Sequence[AffectiveField]) -> Dict[str, float]:
        if not history:
            return {dim: 0.0 for dim in _DIMS}
        matrix = np.stack([f.as_array() for f in history])
        per_dim = np.var(matrix, axis=0)
        return {dim: float(value) for dim, value in zip(_DIMS, per_dim)}

    def entropy(self, history: Sequence[AffectiveField]) -> float:
        if len(history) < 2:
            return 0.0
        mean_variance = sum(self.variances(history).values()) / len(_DIMS)
        return clamp(-math.log(max(ENTROPY_EPS, mean_variance)) / 10.0, 0.0, 1.0)

    def stability(self, history: Sequence[AffectiveField]) -> float:
        total = sum(self.variances(history).values())
        return 1.0 - min(1.0, total)

    def regime(self, field: AffectiveField) -> Regime:
        return classify_regime(field)

    def analyze_trajectory(self, history: Sequence[AffectiveField]) -> TrajectoryAnalysis:
        if not history:
            return TrajectoryAnalysis()
        energies = [self.energy(f) for f in history]
        return TrajectoryAnalysis(
            history=list(history),
            energy=sum(energies) / len(energies),
            entropy=self.entropy(history),
            stability=self.stability(history),
        )


__all__ = [
    "AffectiveFieldSimulator",
    "DEFAULT_DT",
    "ENTROPY_EPS",
    "TrajectoryAnalysis",
]

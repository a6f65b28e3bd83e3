from __future__ import annotations

from .dynamics import AffectiveFieldSimulator, TrajectoryAnalysis
from .field import AffectiveDynamicsParameters, AffectiveField
from .regime import Regime, classify_regime

__all__ = [
    "AffectiveDynamicsParameters",
    "AffectiveField",
    "AffectiveFieldSimulator",
    "Regime",
    "TrajectoryAnalysis",
    "classify_regime",
]

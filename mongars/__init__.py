"""Affective-field simulation, reflective self-model and idle maintenance cycles."""

from __future__ import annotations

__version__ = "0.1.0"

from mongars.affect import AffectiveDynamicsParameters, AffectiveField, AffectiveFieldSimulator
from mongars.mind import ReflectiveModel
from mongars.runtime import CognitiveLoop, SommeilScheduler

__all__ = [
    "AffectiveDynamicsParameters",
    "AffectiveField",
    "AffectiveFieldSimulator",
    "CognitiveLoop",
    "ReflectiveModel",
    "SommeilScheduler",
    "__version__",
]

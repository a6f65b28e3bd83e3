# -*- coding: utf-8 -*-
"""Qualitative regime labels for an affective field."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Tuple

from .field import AffectiveField

CALM_STABILITY = "calm-stability"
EXPLORATORY_CURIOSITY = "exploratory-curiosity"
STRESS_ADAPTIVE = "stress-adaptive"
NEGATIVE_SPIRAL = "negative-spiral"
TRANSITIONAL = "transitional"


@dataclass(frozen=True)
class Regime:
    name: str
    confidence: float


# Evaluated top to bottom; the first predicate that holds wins.
REGIME_RULES: Tuple[Tuple[str, float, Callable[[AffectiveField], bool]], ...] = (
    (CALM_STABILITY, 0.9, lambda f: f.a < 0.3 and f.u < 0.4 and f.v > 0.0),
    (EXPLORATORY_CURIOSITY, 0.85, lambda f: f.m > 0.7 and 0.3 < f.u < 0.7),
    (STRESS_ADAPTIVE, 0.8, lambda f: f.u > 0.7 and abs(f.v) < 0.3),
    (NEGATIVE_SPIRAL, 0.75, lambda f: f.v < -0.3 and f.u > 0.6),
)
FALLBACK_REGIME = Regime(TRANSITIONAL, 0.5)


def classify_regime(field: AffectiveField) -> Regime:
    for name, confidence, predicate in REGIME_RULES:
        if predicate(field):
            return Regime(name, confidence)
    return FALLBACK_REGIME


__all__ = [
    "CALM_STABILITY",
    "EXPLORATORY_CURIOSITY",
    "FALLBACK_REGIME",
    "NEGATIVE_SPIRAL",
    "REGIME_RULES",
    "Regime",
    "STRESS_ADAPTIVE",
    "TRANSITIONAL",
    "classify_regime",
]

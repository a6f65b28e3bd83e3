# -*- coding: utf-8 -*-
"""Threshold-driven inner commentary and its theme buckets."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Set

from mongars.affect.field import AffectiveField

NOMINAL_COMMENTARY = "internal state nominal"

POSITIVE_VALENCE = "experiencing positive valence alignment"
NEGATIVE_VALENCE = "detecting negative valence shift"
HIGH_UNCERTAINTY = "high uncertainty requires additional context"
HIGH_LOAD = "cognitive load elevated - may need processing optimization"
SPREAD_ATTENTION = "attention distributed across multiple focal points"
HIGH_MOTIVATION = "intrinsic motivation driving exploration"

# (theme, substring) in bucket order
THEMES = (
    ("uncertainty", "uncertainty"),
    ("valence", "valence"),
    ("cognitive-load", "cognitive load"),
    ("motivation", "motivation"),
    ("attention", "attention"),
)


def compose_commentary(
    affect: AffectiveField,
    cognitive_load: float,
    attention: Sequence[str],
) -> str:
    parts: List[str] = []
    if affect.v > 0.5:
        parts.append(POSITIVE_VALENCE)
    elif affect.v < -0.3:
        parts.append(NEGATIVE_VALENCE)
    if affect.u > 0.7:
        parts.append(HIGH_UNCERTAINTY)
    if cognitive_load > 0.7:
        parts.append(HIGH_LOAD)
    if len(attention) > 5:
        parts.append(SPREAD_ATTENTION)
    if affect.m > 0.7:
        parts.append(HIGH_MOTIVATION)
    return "; ".join(parts) or NOMINAL_COMMENTARY


def is_nominal(commentary: str) -> bool:
    return not commentary or commentary == NOMINAL_COMMENTARY


def themes_of(commentaries: Iterable[str]) -> Set[str]:
    found: Set[str] = set()
    for text in commentaries:
        for theme, needle in THEMES:
            if needle in text:
                found.add(theme)
    return found


def theme_consistency(commentaries: Sequence[str]) -> float:
    """Distinct themes per commentary, doubled and capped at 1."""
    ratio = min(1.0, len(themes_of(commentaries)) / max(1, len(commentaries)))
    return min(1.0, ratio * 2.0)


__all__ = [
    "HIGH_LOAD",
    "HIGH_MOTIVATION",
    "HIGH_UNCERTAINTY",
    "NEGATIVE_VALENCE",
    "NOMINAL_COMMENTARY",
    "POSITIVE_VALENCE",
    "SPREAD_ATTENTION",
    "THEMES",
    "compose_commentary",
    "is_nominal",
    "theme_consistency",
    "themes_of",
]

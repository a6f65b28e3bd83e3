from __future__ import annotations

import pytest

from mongars.affect import AffectiveField, AffectiveFieldSimulator, classify_regime


@pytest.mark.parametrize(
    ("field", "name", "confidence"),
    [
        (AffectiveField(v=0.5, a=0.2, u=0.2, m=0.1), "calm-stability", 0.9),
        (AffectiveField(v=0.0, a=0.2, u=0.8, m=0.1), "stress-adaptive", 0.8),
        (AffectiveField(v=0.0, a=0.5, u=0.5, m=0.9), "exploratory-curiosity", 0.85),
        (AffectiveField(v=-0.6, a=0.5, u=0.65, m=0.2), "negative-spiral", 0.75),
        (AffectiveField(v=0.0, a=0.5, u=0.5, m=0.5), "transitional", 0.5),
    ],
)
def test_regime_rules(field: AffectiveField, name: str, confidence: float) -> None:
    regime = AffectiveFieldSimulator().regime(field)
    assert regime.name == name
    assert regime.confidence == confidence


def test_rule_order_prefers_calm_over_curiosity() -> None:
    # satisfies both the calm and the exploratory predicates
    field = AffectiveField(v=0.2, a=0.1, u=0.35, m=0.9)
    assert classify_regime(field).name == "calm-stability"


def test_boundaries_are_strict() -> None:
    assert classify_regime(AffectiveField(v=0.0, a=0.2, u=0.2, m=0.1)).name == "transitional"
    assert classify_regime(AffectiveField(v=0.0, a=0.5, u=0.7, m=0.1)).name == "transitional"
    assert classify_regime(AffectiveField(v=-0.3, a=0.5, u=0.9, m=0.1)).name == "transitional"

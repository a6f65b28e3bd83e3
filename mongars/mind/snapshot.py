"""Containers for inner-state snapshots and the slowly drifting meta-model."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

import numpy as np

from mongars.affect.field import AffectiveField


@dataclass(frozen=True)
class InnerStateSnapshot:
    """One reflective tick.

    ``attention`` keeps arrival order; overlap math treats it as a set.
    ``predictions`` is stored as a read-only copy so history cannot be
    rewritten through a returned snapshot.
    """

    timestamp: float
    affective_state: AffectiveField
    cognitive_load: float
    attention: Tuple[str, ...] = ()
    predictions: Mapping[str, float] = field(default_factory=dict)
    commentary: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "attention", tuple(self.attention))
        object.__setattr__(self, "predictions", MappingProxyType(dict(self.predictions)))

    def attention_set(self) -> frozenset[str]:
        return frozenset(self.attention)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": float(self.timestamp),
            "affective_state": self.affective_state.to_dict(),
            "cognitive_load": float(self.cognitive_load),
            "attention": list(self.attention),
            "predictions": {k: float(v) for k, v in self.predictions.items()},
            "commentary": self.commentary,
        }


@dataclass
class MetaModelRepresentation:
    identity_vector: np.ndarray
    style_signature: Dict[str, float]
    emotional_baseline: AffectiveField
    motivational_profile: np.ndarray
    temporal_coherence: float = 0.5

    def __post_init__(self) -> None:
        self.identity_vector = np.asarray(self.identity_vector, dtype=float).reshape(-1)
        self.motivational_profile = np.asarray(self.motivational_profile, dtype=float).reshape(-1)

    def copy(self) -> "MetaModelRepresentation":
        return MetaModelRepresentation(
            identity_vector=self.identity_vector.copy(),
            style_signature=dict(self.style_signature),
            emotional_baseline=self.emotional_baseline,
            motivational_profile=self.motivational_profile.copy(),
            temporal_coherence=self.temporal_coherence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity_norm": float(np.linalg.norm(self.identity_vector)),
            "identity_dim": int(self.identity_vector.shape[0]),
            "style_signature": {k: float(v) for k, v in self.style_signature.items()},
            "emotional_baseline": self.emotional_baseline.to_dict(),
            "motivational_profile": [float(x) for x in self.motivational_profile],
            "temporal_coherence": float(self.temporal_coherence),
        }


__all__ = ["InnerStateSnapshot", "MetaModelRepresentation"]

"""Affective field value and the coefficients that drive its dynamics."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace as dc_replace
from typing import Any, Mapping

import numpy as np

VALENCE_RANGE = (-1.0, 1.0)
UNIT_RANGE = (0.0, 1.0)

_LOWER = np.array([VALENCE_RANGE[0], UNIT_RANGE[0], UNIT_RANGE[0], UNIT_RANGE[0]])
_UPPER = np.array([VALENCE_RANGE[1], UNIT_RANGE[1], UNIT_RANGE[1], UNIT_RANGE[1]])


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _coerce_float(payload: Mapping[str, Any] | None, key: str, default: float = 0.0) -> float:
    if not payload:
        return default
    try:
        return float(payload.get(key, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class AffectiveField:
    """Immutable (valence, arousal, uncertainty, motivation) sample.

    ``v`` lives in [-1, 1]; ``a``, ``u`` and ``m`` live in [0, 1].  The
    constructor does not clamp: producers call :meth:`clamped` at the end of
    a transition so that out-of-domain values never reach consumers.
    """

    v: float = 0.0
    a: float = 0.0
    u: float = 0.0
    m: float = 0.0
    timestamp: float = 0.0

    @classmethod
    def zero(cls, timestamp: float = 0.0) -> "AffectiveField":
        return cls(0.0, 0.0, 0.0, 0.0, timestamp)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "AffectiveField":
        return cls(
            v=_coerce_float(payload, "v"),
            a=_coerce_float(payload, "a"),
            u=_coerce_float(payload, "u"),
            m=_coerce_float(payload, "m"),
            timestamp=_coerce_float(payload, "timestamp"),
        )

    def clamped(self) -> "AffectiveField":
        # np.clip lets NaN through untouched; non-finite inputs are the caller's problem.
        v, a, u, m = np.clip(self.as_array(), _LOWER, _UPPER)
        return AffectiveField(float(v), float(a), float(u), float(m), self.timestamp)

    def as_array(self) -> np.ndarray:
        return np.array([self.v, self.a, self.u, self.m], dtype=float)

    def to_dict(self) -> dict[str, float]:
        return {
            "v": float(self.v),
            "a": float(self.a),
            "u": float(self.u),
            "m": float(self.m),
            "timestamp": float(self.timestamp),
        }


@dataclass(frozen=True)
class AffectiveDynamicsParameters:
    """Decay (``lambda_*``) and coupling coefficients of the affect ODEs.

    All four decay rates must be strictly positive; together with the clamp
    at the end of every step this keeps trajectories bounded.
    """

    lambda_v: float = 0.15
    lambda_a: float = 0.2
    lambda_u: float = 0.18
    lambda_m: float = 0.12
    wve: float = 0.3
    wvm: float = 0.25
    wvu: float = 0.2
    wae: float = 0.35
    wam: float = 0.3
    alpha: float = 0.4
    beta_u: float = 0.25
    gamma_m: float = 0.15
    eta_u: float = 0.2

    def __post_init__(self) -> None:
        for name, value in zip(("lambda_v", "lambda_a", "lambda_u", "lambda_m"), self.decays()):
            if not value > 0.0:
                raise ValueError(f"decay coefficient {name} must be > 0 (got {value!r})")

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "AffectiveDynamicsParameters":
        payload = payload or {}
        known = {f.name for f in fields(cls)}
        overrides = {key: float(value) for key, value in payload.items() if key in known}
        return cls(**overrides)

    def decays(self) -> tuple[float, float, float, float]:
        return (self.lambda_v, self.lambda_a, self.lambda_u, self.lambda_m)

    def replace(self, **overrides: float) -> "AffectiveDynamicsParameters":
        return dc_replace(self, **overrides)

    def to_dict(self) -> dict[str, float]:
        return {key: float(value) for key, value in asdict(self).items()}


__all__ = [
    "AffectiveDynamicsParameters",
    "AffectiveField",
    "UNIT_RANGE",
    "VALENCE_RANGE",
    "clamp",
]

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class AffectCfg:
    dt: float = field(default=0.1)
    # Overrides for AffectiveDynamicsParameters (lambda_v, wve, ...).
    dynamics: dict[str, float] = field(default_factory=dict)


@dataclass
class ReflectiveCfg:
    history_capacity: int = field(default=100)
    window: int = field(default=10)
    continuity_window: int = field(default=5)
    identity_dim: int = field(default=128)
    learning_rate: float = field(default=0.05)
    identity_noise: float = field(default=0.005)
    coherence_decay: float = field(default=0.99)
    narrative_decay: float = field(default=0.95)
    introspection_threshold: float = field(default=0.4)
    initial_coherence: float = field(default=0.5)
    initial_continuity: float = field(default=0.5)
    style_signature: dict[str, float] = field(
        default_factory=lambda: {"technical": 0.3, "empathetic": 0.5, "exploratory": 0.4}
    )
    emotional_baseline: dict[str, float] = field(
        default_factory=lambda: {"v": 0.1, "a": 0.3, "u": 0.5, "m": 0.6}
    )
    motivational_profile: list[float] = field(default_factory=lambda: [0.6, 0.4, 0.7, 0.5])
    seed: int | None = field(default=None)


@dataclass
class SommeilCfg:
    # Simulated work per task type, in seconds.
    durations: dict[str, float] = field(
        default_factory=lambda: {
            "consolidation": 0.5,
            "pruning": 0.3,
            "reranking": 0.4,
            "indexing": 0.6,
        }
    )
    consolidation_min: int = field(default=5)
    consolidation_max: int = field(default=15)
    priorities: dict[str, int] = field(
        default_factory=lambda: {
            "consolidation": 3,
            "pruning": 2,
            "reranking": 2,
            "indexing": 1,
        }
    )
    check_interval: float = field(default=15.0)
    seed: int | None = field(default=None)


@dataclass
class LoopCfg:
    stimulus_per_memory: float = field(default=0.02)
    max_stimulus: float = field(default=0.5)
    # 0 disables automatic maintenance scheduling
    schedule_every_ticks: int = field(default=0)
    affect_history: int = field(default=50)
    cognitive_load: float = field(default=0.4)
    behavior_pattern: str = field(default="empathetic")


@dataclass
class MongarsCfg:
    affect: AffectCfg = field(default_factory=AffectCfg)
    reflective: ReflectiveCfg = field(default_factory=ReflectiveCfg)
    sommeil: SommeilCfg = field(default_factory=SommeilCfg)
    loop: LoopCfg = field(default_factory=LoopCfg)


def load_mongars_cfg(path: str | Path = "config/mongars.yaml") -> MongarsCfg:
    cfg_path = Path(path)
    if not cfg_path.exists():
        return MongarsCfg()
    payload = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"{cfg_path}: top-level YAML must be a mapping")
    return MongarsCfg(
        affect=_merge_dataclass(AffectCfg(), payload.get("affect", {})),
        reflective=_merge_dataclass(ReflectiveCfg(), payload.get("reflective", {})),
        sommeil=_merge_dataclass(SommeilCfg(), payload.get("sommeil", {})),
        loop=_merge_dataclass(LoopCfg(), payload.get("loop", {})),
    )


def _merge_dataclass(instance, overrides: dict[str, Any] | None):
    data = instance.__dict__.copy()
    for key, value in (overrides or {}).items():
        if key not in data:
            continue
        current = data[key]
        if isinstance(current, dict) and isinstance(value, dict):
            merged = dict(current)
            merged.update(value)
            data[key] = merged
        else:
            data[key] = value
    return instance.__class__(**data)


__all__ = [
    "AffectCfg",
    "LoopCfg",
    "MongarsCfg",
    "ReflectiveCfg",
    "SommeilCfg",
    "load_mongars_cfg",
]

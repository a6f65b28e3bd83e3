from __future__ import annotations

from .commentary import NOMINAL_COMMENTARY, compose_commentary
from .reflective import ReflectiveModel
from .snapshot import InnerStateSnapshot, MetaModelRepresentation

__all__ = [
    "InnerStateSnapshot",
    "MetaModelRepresentation",
    "NOMINAL_COMMENTARY",
    "ReflectiveModel",
    "compose_commentary",
]
